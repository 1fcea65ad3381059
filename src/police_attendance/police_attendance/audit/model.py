from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class AuditEntry:
    log_id: int
    user_id: int
    action: str
    created_at: datetime
    details: Mapping[str, Any] = field(default_factory=dict)
