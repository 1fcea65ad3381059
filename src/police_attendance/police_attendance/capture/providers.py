from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..attendance.model import GeoFix


class MediaTrack(Protocol):
    def stop(self) -> None:
        raise NotImplementedError


class MediaStream(Protocol):
    """A live camera stream. Every track must be stopped to release the device."""

    @property
    def tracks(self) -> Sequence[MediaTrack]:
        raise NotImplementedError

    def capture_frame(self) -> bytes:
        """Grab a still JPEG frame from the stream."""

        raise NotImplementedError


class LocationProvider(Protocol):
    def get_current_position(self, *, timeout: float) -> GeoFix:
        """Raise PermissionDeniedError or LocationTimeoutError when no fix is available."""

        raise NotImplementedError


class CameraProvider(Protocol):
    def open_stream(self, *, width: Optional[int] = None, height: Optional[int] = None) -> MediaStream:
        """Raise PermissionDeniedError when the camera is denied or missing."""

        raise NotImplementedError


def stop_all_tracks(stream: Optional[MediaStream]) -> None:
    if stream is None:
        return
    for track in stream.tracks:
        track.stop()
