"""Punch capture: location fix, camera still, confirmation, submission.

States: IDLE -> LOCATING -> CAMERA_READY -> CONFIRMING -> SUBMITTING -> DONE | FAILED.
The camera is released on every path out of CAMERA_READY/CONFIRMING/SUBMITTING.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from ..attendance.model import GeoFix, NewPunchEvent, PunchEvent
from ..common.datetime_utils import now_local
from ..common.events import EventEmitter, Unsubscribe
from ..common.retry import RetryPolicy
from ..core.constants import CAMERA_HEIGHT, CAMERA_WIDTH, LOCATION_TIMEOUT_SECONDS
from ..core.enums import CaptureState, PunchType
from ..core.exceptions import DomainError, InvalidTransitionError, LocationTimeoutError
from ..punch_state.cache import PendingPunch, PunchStateCache
from .photo_storage import PhotoStorage
from .providers import CameraProvider, LocationProvider, MediaStream, stop_all_tracks

logger = logging.getLogger(__name__)


class PunchRecorder(Protocol):
    def record_punch(self, event: NewPunchEvent) -> PunchEvent:
        raise NotImplementedError


class LocationValidator(Protocol):
    def validate_location(self, latitude: float, longitude: float, station_id: Optional[str] = None) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class CaptureOutcome:
    event: PunchEvent
    geofence: Any = None


class CaptureFlow:
    def __init__(
        self,
        *,
        user_id: int,
        punch_type: PunchType,
        location: LocationProvider,
        camera: CameraProvider,
        photos: PhotoStorage,
        recorder: PunchRecorder,
        punch_state: PunchStateCache,
        geofence: Optional[LocationValidator] = None,
        location_timeout: float = LOCATION_TIMEOUT_SECONDS,
        location_retry: Optional[RetryPolicy] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self.user_id = int(user_id)
        self.punch_type = punch_type
        self._location = location
        self._camera = camera
        self._photos = photos
        self._recorder = recorder
        self._punch_state = punch_state
        self._geofence = geofence
        self._location_timeout = float(location_timeout)
        self._location_retry = location_retry
        self._clock = clock

        self._state = CaptureState.IDLE
        self._transitions: EventEmitter[CaptureState] = EventEmitter()
        self._generation = 0

        self.fix: Optional[GeoFix] = None
        self.stream: Optional[MediaStream] = None
        self.photo: Optional[bytes] = None
        self.geofence_check: Any = None
        self.outcome: Optional[CaptureOutcome] = None
        self.error: Optional[DomainError] = None

    @property
    def state(self) -> CaptureState:
        return self._state

    def subscribe(self, listener: Callable[[CaptureState], None]) -> Unsubscribe:
        return self._transitions.subscribe(listener)

    def _move(self, state: CaptureState) -> None:
        logger.debug("capture flow user=%s %s -> %s", self.user_id, self._state.value, state.value)
        self._state = state
        self._transitions.emit(state)

    def _require(self, *allowed: CaptureState) -> None:
        if self._state not in allowed:
            names = ", ".join(s.value for s in allowed)
            raise InvalidTransitionError(f"Action not allowed in state {self._state.value} (expected {names})")

    def _release_camera(self) -> None:
        stream, self.stream = self.stream, None
        stop_all_tracks(stream)

    def _fail(self, error: DomainError) -> None:
        self._release_camera()
        self.fix = None
        self.photo = None
        self.error = error
        logger.warning("capture flow failed for user %s: %s", self.user_id, error)
        self._move(CaptureState.FAILED)

    def _rollback(self, pending: Optional[PendingPunch]) -> None:
        if pending is None:
            return
        try:
            self._punch_state.rollback(pending)
        except DomainError:
            logger.exception("could not roll back cached punch state for user %s", self.user_id)

    def _acquire_fix(self) -> GeoFix:
        def attempt() -> GeoFix:
            return self._location.get_current_position(timeout=self._location_timeout)

        if self._location_retry is None:
            return attempt()
        # Only timeouts are worth retrying; a permission denial is final.
        policy = RetryPolicy(
            max_attempts=self._location_retry.max_attempts,
            backoff=self._location_retry.backoff,
            retry_on=(LocationTimeoutError,),
            sleep=self._location_retry.sleep,
        )
        return policy.call(attempt, label="location fix")

    def start(self) -> CaptureState:
        """IDLE -> LOCATING -> CAMERA_READY, or FAILED."""

        self._require(CaptureState.IDLE)
        self.error = None
        self.outcome = None
        generation = self._generation
        self._move(CaptureState.LOCATING)

        try:
            fix = self._acquire_fix()
        except DomainError as e:
            if generation != self._generation:
                return self._state
            self._fail(e)
            return self._state

        if generation != self._generation or self._state != CaptureState.LOCATING:
            logger.debug("discarding location fix that arrived after cancel (user=%s)", self.user_id)
            return self._state
        self.fix = fix

        if self._geofence is not None:
            try:
                self.geofence_check = self._geofence.validate_location(fix.latitude, fix.longitude)
            except DomainError as e:
                # Informational only; the punch proceeds without it.
                logger.warning("geofence check unavailable for user %s: %s", self.user_id, e)
                self.geofence_check = None

        try:
            stream = self._camera.open_stream(width=CAMERA_WIDTH, height=CAMERA_HEIGHT)
        except DomainError as e:
            self._fail(e)
            return self._state

        if generation != self._generation:
            stop_all_tracks(stream)
            return self._state

        self.stream = stream
        self._move(CaptureState.CAMERA_READY)
        return self._state

    def capture(self) -> CaptureState:
        """CAMERA_READY -> CONFIRMING with a still frame."""

        self._require(CaptureState.CAMERA_READY)
        try:
            self.photo = self.stream.capture_frame()
        except DomainError as e:
            self._fail(e)
            return self._state
        except Exception as e:
            self._fail(DomainError(f"Could not capture photo: {e}"))
            raise
        self._move(CaptureState.CONFIRMING)
        return self._state

    def retake(self) -> CaptureState:
        self._require(CaptureState.CONFIRMING)
        self.photo = None
        self._move(CaptureState.CAMERA_READY)
        return self._state

    def confirm(self) -> CaptureState:
        """Upload, persist and confirm the punch; roll back the cached state on any failure."""

        self._require(CaptureState.CONFIRMING)
        self._move(CaptureState.SUBMITTING)

        pending: Optional[PendingPunch] = None
        try:
            pending = self._punch_state.record_punch(self.user_id, self.punch_type)
            taken_at = self._clock()
            photo_url = self._photos.upload(user_id=self.user_id, taken_at=taken_at, data=self.photo)
            event = self._recorder.record_punch(
                NewPunchEvent(
                    user_id=self.user_id,
                    punch_type=self.punch_type,
                    timestamp=taken_at,
                    latitude=self.fix.latitude,
                    longitude=self.fix.longitude,
                    accuracy=self.fix.accuracy,
                    photo_url=photo_url,
                )
            )
        except DomainError as e:
            self._rollback(pending)
            self._fail(e)
            return self._state
        except Exception as e:
            self._rollback(pending)
            self._fail(DomainError(f"Punch submission failed: {e}"))
            raise

        try:
            self._punch_state.confirm(pending, timestamp=event.timestamp)
        except DomainError:
            # The event is saved; the next initialize refetches it.
            logger.exception("punch %s saved but cached state for user %s not updated", event.event_id, self.user_id)
        self._release_camera()
        self.outcome = CaptureOutcome(event=event, geofence=self.geofence_check)
        self._move(CaptureState.DONE)
        return self._state

    def cancel(self) -> CaptureState:
        """Stop the camera now and return to IDLE; a late location result will be ignored."""

        if self._state in (CaptureState.SUBMITTING, CaptureState.DONE):
            raise InvalidTransitionError(f"Cannot cancel in state {self._state.value}")
        self._generation += 1
        self._release_camera()
        self.fix = None
        self.photo = None
        self._move(CaptureState.IDLE)
        return self._state

    def reset(self) -> CaptureState:
        self._require(CaptureState.DONE, CaptureState.FAILED)
        self._release_camera()
        self.fix = None
        self.photo = None
        self.geofence_check = None
        self._move(CaptureState.IDLE)
        return self._state

    def run(self) -> CaptureOutcome:
        """Drive the whole flow without user interaction (start, capture, confirm).

        Raises the flow's error when it ends in FAILED.
        """

        for step in (self.start, self.capture, self.confirm):
            step()
            if self._state == CaptureState.FAILED:
                raise self.error
        return self.outcome
