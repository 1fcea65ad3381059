"""Punch use case: one capture flow per request, serialized per officer."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from ..attendance.model import PunchEvent
from ..attendance.repository import PunchEventRepository
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..common.retry import RetryPolicy
from ..core.constants import LOCATION_TIMEOUT_SECONDS
from ..core.enums import PunchType
from ..core.exceptions import DomainError, InvalidTransitionError
from ..geofence.model import GeofenceCheck
from ..geofence.service import GeofenceService
from ..punch_state.cache import PunchStateCache
from ..punch_state.model import PunchState
from ..punch_state.store import StateStore
from ..shifts.model import ShiftCompliance
from ..shifts.service import ShiftService
from .flow import CaptureFlow
from .photo_storage import PhotoStorage
from .providers import CameraProvider, LocationProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PunchResult:
    event: PunchEvent
    state: PunchState
    geofence: Optional[GeofenceCheck] = None
    compliance: Optional[ShiftCompliance] = None
    violation_id: Optional[int] = None


class PunchService:
    def __init__(
        self,
        *,
        attendance: AttendanceService,
        events: PunchEventRepository,
        store: StateStore,
        photos: PhotoStorage,
        geofences: Optional[GeofenceService] = None,
        shifts: Optional[ShiftService] = None,
        location_timeout: float = LOCATION_TIMEOUT_SECONDS,
        location_retry: Optional[RetryPolicy] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._events = events
        self._store = store
        self._photos = photos
        self._geofences = geofences
        self._shifts = shifts
        self._location_timeout = location_timeout
        self._location_retry = location_retry
        self._clock = clock
        self._locks: Dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks[int(user_id)]

    def cache_for(self, user_id: int) -> PunchStateCache:
        cache = PunchStateCache(self._events, self._store, clock=self._clock)
        cache.initialize(int(user_id))
        return cache

    def current_state(self, user_id: int) -> PunchState:
        return self.cache_for(user_id).current_state()

    def next_punch_type(self, user_id: int) -> PunchType:
        return self.cache_for(user_id).get_next_punch_type()

    def build_flow(
        self,
        *,
        user_id: int,
        punch_type: PunchType,
        cache: PunchStateCache,
        location: LocationProvider,
        camera: CameraProvider,
    ) -> CaptureFlow:
        return CaptureFlow(
            user_id=user_id,
            punch_type=punch_type,
            location=location,
            camera=camera,
            photos=self._photos,
            recorder=self._attendance,
            punch_state=cache,
            geofence=self._geofences,
            location_timeout=self._location_timeout,
            location_retry=self._location_retry,
            clock=self._clock,
        )

    def punch(
        self,
        *,
        user_id: int,
        location: LocationProvider,
        camera: CameraProvider,
        punch_type: Optional[PunchType] = None,
    ) -> PunchResult:
        """Run a full capture for the officer's next punch.

        `punch_type`, when given, must match the expected next punch; a repeated
        submission of the same punch raises InvalidTransitionError.
        """

        with self._lock_for(user_id):
            cache = self.cache_for(user_id)
            expected = cache.get_next_punch_type()
            if punch_type is not None and punch_type != expected:
                raise InvalidTransitionError(f"Already punched {punch_type.value.lower()}; next punch is {expected.value}")

            previous = cache.current_state()
            flow = self.build_flow(
                user_id=user_id,
                punch_type=expected,
                cache=cache,
                location=location,
                camera=camera,
            )
            outcome = flow.run()

        event = outcome.event
        compliance = self._check_shift(event, previous)
        violation_id = self._log_violation(event, outcome.geofence, compliance)
        return PunchResult(
            event=event,
            state=cache.current_state(),
            geofence=outcome.geofence,
            compliance=compliance,
            violation_id=violation_id,
        )

    def _check_shift(self, event: PunchEvent, previous: PunchState) -> Optional[ShiftCompliance]:
        if self._shifts is None:
            return None
        punch_in_time = previous.last_punch_time if previous.last_punch_type == PunchType.IN else None
        try:
            return self._shifts.check_punch(
                user_id=event.user_id,
                punch_type=event.punch_type,
                punch_time=event.timestamp,
                punch_in_time=punch_in_time,
            )
        except DomainError as e:
            logger.warning("shift compliance unavailable for event %s: %s", event.event_id, e)
            return None

    def _log_violation(
        self,
        event: PunchEvent,
        check: Optional[GeofenceCheck],
        compliance: Optional[ShiftCompliance],
    ) -> Optional[int]:
        # No configured station means nothing to violate.
        if self._geofences is None or check is None or check.is_valid or check.geofence is None:
            return None
        if event.latitude is None or event.longitude is None:
            return None
        shift_id = compliance.shift.shift_id if compliance and compliance.shift else None
        try:
            return self._geofences.log_violation(
                user_id=event.user_id,
                latitude=event.latitude,
                longitude=event.longitude,
                check=check,
                shift_id=shift_id,
            )
        except DomainError:
            logger.exception("could not log boundary violation for event %s", event.event_id)
            return None
