from __future__ import annotations

import io
from datetime import datetime, timedelta
from typing import List, Optional

import pytest
from PIL import Image

from src.police_attendance.police_attendance.attendance.model import AttendanceLogRow, GeoFix, NewPunchEvent, PunchEvent
from src.police_attendance.police_attendance.core.enums import PunchType
from src.police_attendance.police_attendance.core.exceptions import LocationTimeoutError, PermissionDeniedError
from src.police_attendance.police_attendance.punch_state.store import InMemoryStateStore

# A Monday morning.
FIXED_NOW = datetime(2026, 3, 2, 8, 30, 0)


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryPunchEvents:
    def __init__(self, events: Optional[List[PunchEvent]] = None):
        self.events: List[PunchEvent] = list(events or [])
        self._id = max((e.event_id for e in self.events), default=0)
        self.fail_create: Optional[Exception] = None
        self.latest_calls = 0

    def create(self, event: NewPunchEvent) -> PunchEvent:
        if self.fail_create is not None:
            raise self.fail_create
        self._id += 1
        saved = PunchEvent(
            event_id=self._id,
            user_id=event.user_id,
            punch_type=event.punch_type,
            timestamp=event.timestamp,
            latitude=event.latitude,
            longitude=event.longitude,
            photo_url=event.photo_url,
            accuracy=event.accuracy,
        )
        self.events.append(saved)
        return saved

    def list_for_user(self, user_id, *, start=None, end=None, limit=None):
        items = [
            e
            for e in self.events
            if e.user_id == user_id
            and (start is None or e.timestamp >= start)
            and (end is None or e.timestamp < end)
        ]
        items.sort(key=lambda e: (e.timestamp, e.event_id), reverse=True)
        return items[:limit] if limit else items

    def latest_for_user_since(self, user_id, since):
        self.latest_calls += 1
        items = self.list_for_user(user_id, start=since)
        return items[0] if items else None

    def list_log_rows(self, *, start, end, user_id=None, punch_type=None, limit=500):
        rows = []
        for e in sorted(self.events, key=lambda e: (e.timestamp, e.event_id), reverse=True):
            if not start <= e.timestamp < end:
                continue
            if user_id is not None and e.user_id != user_id:
                continue
            if punch_type is not None and e.punch_type != punch_type:
                continue
            rows.append(AttendanceLogRow(event=e, full_name=f"Officer {e.user_id}", badge_number=f"PC{e.user_id}"))
        return rows[:limit]


class FakeTrack:
    def __init__(self, kind: str):
        self.kind = kind
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakeStream:
    def __init__(self, frame: bytes):
        self.frame = frame
        self.tracks = [FakeTrack("video"), FakeTrack("audio")]

    def capture_frame(self) -> bytes:
        return self.frame


class FakeCamera:
    def __init__(self, frame: bytes = b"jpeg-bytes", *, deny: bool = False):
        self.frame = frame
        self.deny = deny
        self.streams: List[FakeStream] = []

    def open_stream(self, *, width=None, height=None):
        if self.deny:
            raise PermissionDeniedError("Camera permission denied")
        stream = FakeStream(self.frame)
        self.streams.append(stream)
        return stream

    def all_tracks_stopped(self) -> bool:
        return all(t.stopped for s in self.streams for t in s.tracks)


class FakeLocation:
    """Returns `fix`, after raising each error in `errors` once."""

    def __init__(self, fix: Optional[GeoFix] = None, *, errors=(), on_call=None):
        self.fix = fix or GeoFix(latitude=10.7769, longitude=106.7009, accuracy=12.0)
        self.errors = list(errors)
        self.on_call = on_call
        self.calls = 0

    def get_current_position(self, *, timeout: float) -> GeoFix:
        self.calls += 1
        if self.on_call is not None:
            self.on_call()
        if self.errors:
            raise self.errors.pop(0)
        return self.fix


class FakePhotos:
    def __init__(self):
        self.uploads = []
        self.fail: Optional[Exception] = None

    def upload(self, *, user_id: int, taken_at: datetime, data: bytes) -> str:
        if self.fail is not None:
            raise self.fail
        self.uploads.append((user_id, taken_at, data))
        return f"/photos/{user_id}/{len(self.uploads)}.jpg"


def punch(event_id: int, punch_type: PunchType, timestamp: datetime, *, user_id: int = 1) -> PunchEvent:
    return PunchEvent(event_id=event_id, user_id=user_id, punch_type=punch_type, timestamp=timestamp)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now) -> MutableClock:
    return MutableClock(fixed_now)


@pytest.fixture
def make_punch():
    return punch


@pytest.fixture
def events_repo() -> InMemoryPunchEvents:
    return InMemoryPunchEvents()


@pytest.fixture
def state_store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def camera() -> FakeCamera:
    return FakeCamera()


@pytest.fixture
def denied_camera() -> FakeCamera:
    return FakeCamera(deny=True)


@pytest.fixture
def location() -> FakeLocation:
    return FakeLocation()


@pytest.fixture
def flaky_location() -> FakeLocation:
    return FakeLocation(errors=[LocationTimeoutError("timeout"), LocationTimeoutError("timeout")])


@pytest.fixture
def photos() -> FakePhotos:
    return FakePhotos()


@pytest.fixture
def jpeg_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color=(10, 31, 68)).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def make_location():
    return FakeLocation
