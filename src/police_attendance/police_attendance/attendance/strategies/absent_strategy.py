from __future__ import annotations

from datetime import time
from typing import Optional

from ...core.enums import DisplayStatus
from ..model import PunchEvent
from .base import DisplayStatusStrategy


class AbsentStrategy(DisplayStatusStrategy):
    """No punch-in for the day (only a punch-out, or a synthesized gap day)."""

    def decide(self, *, punch_in: Optional[PunchEvent], punch_out: Optional[PunchEvent], late_cutoff: time) -> DisplayStatus:
        return DisplayStatus.ABSENT
