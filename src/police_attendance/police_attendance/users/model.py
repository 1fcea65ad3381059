from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Officer:
    """Domain entity: officer profile.

    Note: plain data object (no DB access code).
    """

    user_id: int
    badge_number: str
    full_name: str
    rank: str
    role: Role
    department: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Account:
    """Credentials looked up by badge number at sign-in."""

    user_id: int
    badge_number: str
    password_hash: str
    is_active: bool = True
