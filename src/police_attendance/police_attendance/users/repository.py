from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Account, Officer


class OfficerRepository(Protocol):
    """Repository interface for officers.

    Note (DIP): the service layer depends on this interface, not on a concrete database.
    """

    def get_account_by_badge(self, badge_number: str) -> Optional[Account]:
        raise NotImplementedError

    def get_profile(self, user_id: int) -> Optional[Officer]:
        raise NotImplementedError

    def create_officer(
        self,
        *,
        badge_number: str,
        full_name: str,
        rank: str,
        role: Role,
        department: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        password_hash: str,
    ) -> int:
        raise NotImplementedError

    def list_officers(self) -> Sequence[Officer]:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
