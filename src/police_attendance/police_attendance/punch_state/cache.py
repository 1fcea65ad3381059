"""Read-through cache of the officer's latest punch today.

The remote event list is the source of truth. The cache is trusted only when its
snapshot is confirmed and dated today; otherwise it refetches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..attendance.repository import PunchEventRepository
from ..common.datetime_utils import is_same_day, now_local, start_of_day
from ..common.events import EventEmitter, Unsubscribe
from ..core.constants import PUNCH_STATE_KEY_PREFIX
from ..core.enums import PunchType
from ..core.exceptions import BackendUnavailableError, ValidationError
from .model import PunchState
from .store import StateStore

logger = logging.getLogger(__name__)


def state_key(user_id: int) -> str:
    return f"{PUNCH_STATE_KEY_PREFIX}{user_id}"


@dataclass(frozen=True)
class PendingPunch:
    """Handle for an optimistic update, used to confirm or roll it back."""

    user_id: int
    punch_type: PunchType
    previous: PunchState
    tentative: PunchState
    token: int


class PunchStateCache:
    def __init__(
        self,
        events: PunchEventRepository,
        store: StateStore,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._events = events
        self._store = store
        self._clock = clock
        self._state = PunchState()
        self._listeners: EventEmitter[PunchState] = EventEmitter()
        self._token = 0

    def initialize(self, user_id: int) -> PunchState:
        now = self._clock()
        cached = self._read(user_id)
        if cached and cached.confirmed and cached.last_punch_time and is_same_day(cached.last_punch_time, now):
            state = cached
        else:
            state = self._fetch_today(user_id, now)
            try:
                self._write(user_id, state)
            except BackendUnavailableError as e:
                logger.warning("punch state for user %s not cached: %s", user_id, e)

        self._set(state)
        return state

    def _fetch_today(self, user_id: int, now: datetime) -> PunchState:
        latest = self._events.latest_for_user_since(int(user_id), start_of_day(now.date()))
        if latest is None:
            return PunchState()
        return PunchState.from_event(latest.punch_type, latest.timestamp)

    def record_punch(self, user_id: int, punch_type: PunchType) -> PendingPunch:
        """Optimistically reflect a punch that is about to be persisted."""

        previous = self._state
        tentative = PunchState.from_event(punch_type, self._clock(), confirmed=False)
        self._token += 1
        pending = PendingPunch(
            user_id=int(user_id),
            punch_type=punch_type,
            previous=previous,
            tentative=tentative,
            token=self._token,
        )
        self._write(user_id, tentative)
        self._set(tentative)
        return pending

    def confirm(self, pending: PendingPunch, *, timestamp: Optional[datetime] = None) -> bool:
        if pending.token != self._token:
            return False
        state = PunchState.from_event(pending.punch_type, timestamp or pending.tentative.last_punch_time)
        self._set(state)
        self._write(pending.user_id, state)
        return True

    def rollback(self, pending: PendingPunch) -> bool:
        """Restore the state from before `pending`. No-op if a newer punch was recorded since."""

        if pending.token != self._token:
            return False
        logger.warning("rolling back optimistic %s punch for user %s", pending.punch_type.value, pending.user_id)
        # In-memory state first: a failed store write leaves only an unconfirmed snapshot behind.
        self._set(pending.previous)
        self._write(pending.user_id, pending.previous)
        return True

    def get_next_punch_type(self) -> PunchType:
        return PunchType.OUT if self._state.is_punched_in else PunchType.IN

    def current_state(self) -> PunchState:
        return self._state

    def subscribe(self, listener: Callable[[PunchState], None]) -> Unsubscribe:
        unsubscribe = self._listeners.subscribe(listener)
        listener(self._state)
        return unsubscribe

    def _set(self, state: PunchState) -> None:
        self._state = state
        self._listeners.emit(state)

    def _read(self, user_id: int) -> Optional[PunchState]:
        try:
            raw = self._store.get(state_key(user_id))
        except OSError as e:
            logger.warning("punch state store unreadable for user %s, refetching: %s", user_id, e)
            return None
        if not raw:
            return None
        try:
            return PunchState.from_json(raw)
        except ValidationError as e:
            logger.warning("ignoring punch state snapshot for user %s: %s", user_id, e)
            return None

    def _write(self, user_id: int, state: PunchState) -> None:
        try:
            self._store.set(state_key(user_id), state.to_json())
        except OSError as e:
            raise BackendUnavailableError(f"Could not save punch state: {e}") from e
