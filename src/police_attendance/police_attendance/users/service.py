from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.repository import AuditLogRepository
from ..common.retry import RetryPolicy, linear_backoff
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import PROFILE_FETCH_ATTEMPTS, PROFILE_FETCH_BACKOFF_SECONDS
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendUnavailableError,
    NotFoundError,
    ValidationError,
)
from .model import Officer
from .repository import OfficerRepository

logger = logging.getLogger(__name__)


def default_profile_retry() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=PROFILE_FETCH_ATTEMPTS,
        backoff=linear_backoff(PROFILE_FETCH_BACKOFF_SECONDS),
        retry_on=(NotFoundError, BackendUnavailableError),
    )


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after sign-in."""

    user_id: int
    badge_number: str
    full_name: str
    rank: str
    role: Role


class AuthService:
    """Use case: sign in with badge number + password."""

    def __init__(self, officers: OfficerRepository, *, profile_retry: Optional[RetryPolicy] = None):
        self._officers = officers
        self._profile_retry = profile_retry or default_profile_retry()

    def fetch_profile(self, user_id: int) -> Officer:
        """Profile lookup, retried because it can lag behind account creation."""

        def attempt() -> Officer:
            profile = self._officers.get_profile(int(user_id))
            if profile is None:
                raise NotFoundError("Officer profile not found")
            return profile

        return self._profile_retry.call(attempt, label=f"profile fetch for user {user_id}")

    def sign_in(self, badge_number: str, password: str) -> SessionUser:
        badge_number = (badge_number or "").strip().upper()
        account = self._officers.get_account_by_badge(badge_number) if badge_number else None
        if not account or not account.is_active:
            raise AuthenticationError("Invalid badge number or password")

        try:
            ok = check_password_hash(account.password_hash, password or "")
        except (ValueError, TypeError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid badge number or password")

        try:
            profile = self.fetch_profile(account.user_id)
        except NotFoundError as e:
            raise AuthenticationError("Profile not found after multiple attempts") from e

        logger.info("officer %s signed in", profile.badge_number)
        return SessionUser(
            user_id=profile.user_id,
            badge_number=profile.badge_number,
            full_name=profile.full_name,
            rank=profile.rank,
            role=profile.role,
        )


class UserService:
    """Use case: manage officers (admin)."""

    def __init__(self, officers: OfficerRepository, audit: Optional[AuditLogRepository] = None):
        self._officers = officers
        self._audit = audit

    def create_officer(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        badge_number: str,
        full_name: str,
        rank: str,
        password: str,
        role: Role = Role.STAFF,
        department: str = "",
        phone: str = "",
        email: str = "",
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        badge_number = require_non_empty(badge_number, "Badge number").upper()
        full_name = require_non_empty(full_name, "Full name")
        rank = require_non_empty(rank, "Rank")
        require_min_length(password, "Password", 6)

        if self._officers.get_account_by_badge(badge_number):
            raise ValidationError("Badge number already exists")

        user_id = self._officers.create_officer(
            badge_number=badge_number,
            full_name=full_name,
            rank=rank,
            role=role,
            department=(department or "").strip() or None,
            phone=(phone or "").strip() or None,
            email=(email or "").strip() or None,
            password_hash=generate_password_hash(password),
        )
        if self._audit:
            self._audit.record(
                user_id=int(admin_user_id),
                action="officer.create",
                details={"officer_id": user_id, "badge_number": badge_number, "role": role.value},
            )
        return user_id

    def list_officers(self) -> Sequence[Officer]:
        return self._officers.list_officers()

    def set_active(self, *, current_role: Role, admin_user_id: int, user_id: int, is_active: bool) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        if int(user_id) == int(admin_user_id) and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        if not self._officers.get_profile(int(user_id)):
            raise NotFoundError("Officer not found")
        if not self._officers.set_active(int(user_id), is_active=is_active):
            raise ValidationError("Updating officer failed")

        if self._audit:
            self._audit.record(
                user_id=int(admin_user_id),
                action="officer.activate" if is_active else "officer.deactivate",
                details={"officer_id": int(user_id)},
            )
