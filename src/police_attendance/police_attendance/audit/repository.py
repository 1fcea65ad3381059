from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import AuditEntry


class AuditLogRepository(Protocol):
    def record(self, *, user_id: int, action: str, details: Optional[Mapping[str, Any]] = None) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 100) -> Sequence[AuditEntry]:
        raise NotImplementedError
