from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class EventEmitter(Generic[T]):
    """Observer list: listeners are called synchronously, in registration order."""

    def __init__(self) -> None:
        self._listeners: List[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, payload: T) -> None:
        for listener in list(self._listeners):
            listener(payload)

    def __len__(self) -> int:
        return len(self._listeners)


@dataclass(frozen=True)
class Change:
    """A row-level change published after a successful write."""

    table: str
    event: str  # INSERT / UPDATE / DELETE
    row: Mapping[str, Any]


@dataclass
class _FeedSubscription:
    table: str
    listener: Callable[[Change], None]
    column_filter: Optional[Mapping[str, Any]]

    def matches(self, change: Change) -> bool:
        if change.table != self.table:
            return False
        if not self.column_filter:
            return True
        return all(change.row.get(col) == value for col, value in self.column_filter.items())


class ChangeFeed:
    """Per-table change notification, filterable by column equality."""

    def __init__(self) -> None:
        self._subs: List[_FeedSubscription] = []

    def subscribe(
        self,
        table: str,
        listener: Callable[[Change], None],
        *,
        column_filter: Optional[Mapping[str, Any]] = None,
    ) -> Unsubscribe:
        sub = _FeedSubscription(table=table, listener=listener, column_filter=dict(column_filter or {}))
        self._subs.append(sub)

        def unsubscribe() -> None:
            if sub in self._subs:
                self._subs.remove(sub)

        return unsubscribe

    def publish(self, table: str, event: str, row: Mapping[str, Any]) -> None:
        change = Change(table=table, event=event, row=dict(row))
        for sub in list(self._subs):
            if sub.matches(change):
                try:
                    sub.listener(change)
                except Exception:
                    # Delivery continues past a failing listener.
                    logger.exception("change listener failed for %s/%s", table, event)
