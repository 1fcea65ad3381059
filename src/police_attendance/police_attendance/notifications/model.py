from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    notification_type: NotificationType
    title: str
    message: str
    created_at: datetime
    is_read: bool = False
    read_at: Optional[datetime] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
