from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar

from ..core.exceptions import DomainError
from .events import ChangeFeed, EventEmitter, Unsubscribe

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveQuery(Generic[T]):
    """Fetch once, then refetch whenever a matching change is published.

    Exposes `data`, `loading` and `error` the way a data-fetching view reads them.
    """

    def __init__(
        self,
        fetch: Callable[[], T],
        feed: ChangeFeed,
        *,
        table: str,
        column_filter: Optional[Mapping[str, Any]] = None,
    ):
        self._fetch = fetch
        self._feed = feed
        self._table = table
        self._filter = column_filter
        self._unsubscribe: Optional[Unsubscribe] = None
        self._updates: EventEmitter[LiveQuery[T]] = EventEmitter()

        self.data: Optional[T] = None
        self.loading = False
        self.error: Optional[str] = None

    def start(self) -> "LiveQuery[T]":
        self.refetch()
        if self._unsubscribe is None:
            self._unsubscribe = self._feed.subscribe(self._table, lambda _change: self.refetch(), column_filter=self._filter)
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_update(self, listener: Callable[["LiveQuery[T]"], None]) -> Unsubscribe:
        return self._updates.subscribe(listener)

    def refetch(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.data = self._fetch()
        except DomainError as e:
            logger.warning("live query on %s failed: %s", self._table, e)
            self.error = str(e) or type(e).__name__
        finally:
            self.loading = False
        self._updates.emit(self)
