from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import NotificationType
from .model import Notification


class NotificationRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        metadata: Optional[Mapping[str, Any]] = None,
        dedupe_key: Optional[str] = None,
    ) -> Optional[int]:
        """New notification id, or None when one with the same (user_id, dedupe_key) exists."""

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int = 50) -> Sequence[Notification]:
        """Newest first."""

        raise NotImplementedError

    def unread_count(self, user_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: int, *, user_id: int, at: datetime) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: int, *, at: datetime) -> int:
        raise NotImplementedError
