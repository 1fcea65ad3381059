from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..common.datetime_utils import to_local
from .model import PunchEvent
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import DisplayStatusStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class DisplayStatusFactory:
    """Factory Pattern: choose the display-status strategy for one day."""

    def for_day(self, *, punch_in: Optional[PunchEvent], late_cutoff: time) -> DisplayStatusStrategy:
        if punch_in is None:
            return AbsentStrategy()

        # Minute resolution: 09:15:59 is still on time for a 09:15 cutoff.
        in_time = to_local(punch_in.timestamp).time().replace(second=0, microsecond=0)
        if in_time > late_cutoff:
            return LateStrategy()
        return PresentStrategy()
