from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PunchType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class PunchState:
    """What the device believes about the officer's duty state today.

    `confirmed=False` marks an optimistic state whose remote write has not been acknowledged yet.
    """

    is_punched_in: bool = False
    last_punch_time: Optional[datetime] = None
    last_punch_type: Optional[PunchType] = None
    confirmed: bool = True

    @classmethod
    def from_event(cls, punch_type: PunchType, timestamp: datetime, *, confirmed: bool = True) -> "PunchState":
        return cls(
            is_punched_in=punch_type == PunchType.IN,
            last_punch_time=timestamp,
            last_punch_type=punch_type,
            confirmed=confirmed,
        )

    def to_json(self) -> str:
        return json.dumps(
            {
                "isPunchedIn": self.is_punched_in,
                "lastPunchTime": self.last_punch_time.isoformat() if self.last_punch_time else None,
                "lastPunchType": self.last_punch_type.value if self.last_punch_type else None,
                "confirmed": self.confirmed,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "PunchState":
        try:
            data = json.loads(raw)
            last_time = data.get("lastPunchTime")
            last_type = data.get("lastPunchType")
            return cls(
                is_punched_in=bool(data.get("isPunchedIn", False)),
                last_punch_time=datetime.fromisoformat(last_time) if last_time else None,
                last_punch_type=PunchType(last_type) if last_type else None,
                confirmed=bool(data.get("confirmed", True)),
            )
        except (ValueError, TypeError, AttributeError) as e:
            raise ValidationError(f"Unreadable punch state snapshot: {e}") from e
