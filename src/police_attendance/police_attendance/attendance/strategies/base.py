from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import time
from typing import Optional

from ...core.enums import DisplayStatus
from ..model import PunchEvent


class DisplayStatusStrategy(ABC):
    """Strategy Pattern: encapsulate how a day's display status is decided."""

    @abstractmethod
    def decide(self, *, punch_in: Optional[PunchEvent], punch_out: Optional[PunchEvent], late_cutoff: time) -> DisplayStatus:
        raise NotImplementedError
