"""Adapters that feed a browser-submitted punch payload into the capture flow.

The browser acquires the fix and the still frame itself and posts them; on the
server the "devices" simply hand back what was posted.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional, Sequence

from ..attendance.model import GeoFix
from ..common.validators import optional_float, require_coordinates
from ..core.exceptions import LocationTimeoutError, PermissionDeniedError, ValidationError

_DATA_URL_PREFIX = "data:"


def decode_data_url(value: str) -> bytes:
    """Bytes of a `data:image/...;base64,` URL (a bare base64 string is accepted too)."""

    raw = (value or "").strip()
    if not raw:
        raise ValidationError("Photo is required")
    if raw.startswith(_DATA_URL_PREFIX):
        header, _, raw = raw.partition(",")
        if ";base64" not in header:
            raise ValidationError("Photo must be base64 encoded")
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Photo is not valid base64") from e


class SubmittedLocation:
    """Location provider for a fix the client already obtained.

    `error` carries the client's geolocation failure code ("denied" or "timeout").
    """

    def __init__(
        self,
        latitude: Optional[float],
        longitude: Optional[float],
        accuracy: Optional[float] = None,
        *,
        error: Optional[str] = None,
    ):
        self._latitude = latitude
        self._longitude = longitude
        self._accuracy = accuracy
        self._error = (error or "").strip().lower() or None

    def get_current_position(self, *, timeout: float) -> GeoFix:
        if self._error == "denied":
            raise PermissionDeniedError("Location permission denied")
        if self._error == "timeout" or self._latitude is None or self._longitude is None:
            raise LocationTimeoutError(f"Location not available within {timeout:.0f}s")
        lat, lon = require_coordinates(self._latitude, self._longitude)
        accuracy = optional_float(self._accuracy, "Accuracy")
        return GeoFix(latitude=lat, longitude=lon, accuracy=accuracy)


class _StillTrack:
    def __init__(self) -> None:
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class _StillFrameStream:
    def __init__(self, frame: bytes):
        self._frame = frame
        self._tracks = [_StillTrack()]

    @property
    def tracks(self) -> Sequence[_StillTrack]:
        return self._tracks

    def capture_frame(self) -> bytes:
        return self._frame


class SubmittedCamera:
    """Camera provider whose single frame is the photo the client posted."""

    def __init__(self, photo_data_url: Optional[str], *, error: Optional[str] = None):
        self._photo = photo_data_url
        self._error = (error or "").strip().lower() or None
        self.last_stream: Optional[_StillFrameStream] = None

    def open_stream(self, *, width: Optional[int] = None, height: Optional[int] = None) -> _StillFrameStream:
        if self._error == "denied":
            raise PermissionDeniedError("Camera permission denied")
        if self._error == "unavailable":
            raise PermissionDeniedError("No camera available")
        self.last_stream = _StillFrameStream(decode_data_url(self._photo or ""))
        return self.last_stream
