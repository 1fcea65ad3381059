from __future__ import annotations

from datetime import time
from typing import Optional

from ...core.enums import DisplayStatus
from ..model import PunchEvent
from .base import DisplayStatusStrategy


class PresentStrategy(DisplayStatusStrategy):
    """Punched in at or before the cutoff."""

    def decide(self, *, punch_in: Optional[PunchEvent], punch_out: Optional[PunchEvent], late_cutoff: time) -> DisplayStatus:
        return DisplayStatus.PRESENT
