from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..common.datetime_utils import utc_now
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Action, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import is_allowed
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_ELEVATED_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def normalize_email(value: object) -> str:
    email = require_non_empty(value, "email").lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("email is not a valid address", {"email": "format"})
    return email


class AuthService:
    """Use case: verify credentials (login) and revoke sessions (logout)."""

    def __init__(self, users: UserRepository, audit: AuditService):
        self._users = users
        self._audit = audit

    def authenticate(self, email: str, password: str, *, ip_address: str = "unknown") -> User:
        user = self._users.get_by_email(normalize_email(email))
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        self._audit.record(AuditAction.LOGIN, user_id=user.uid, resource_type="user", resource_id=user.uid, ip_address=ip_address)
        return user

    def logout(self, uid: str, *, ip_address: str = "unknown") -> None:
        if not self._users.bump_token_version(uid):
            raise NotFoundError("User not found")
        self._audit.record(AuditAction.LOGOUT, user_id=uid, resource_type="user", resource_id=uid, ip_address=ip_address)

    def get_profile(self, uid: str) -> User:
        user = self._users.get_by_id(uid)
        if not user:
            raise NotFoundError("User profile not found")
        return user


class UserService:
    """Use case: manage member accounts (admin)."""

    def __init__(self, users: UserRepository, audit: AuditService):
        self._users = users
        self._audit = audit

    def create_account(
        self,
        *,
        current_role: Role,
        current_uid: str,
        email: str,
        full_name: str,
        password: str,
        role: Role = Role.MEMBER,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> User:
        if not is_allowed(current_role, Action.MANAGE_USERS):
            raise AuthorizationError("Insufficient permissions")
        if role in _ELEVATED_ROLES and not is_allowed(current_role, Action.GRANT_ADMIN_ROLES):
            raise AuthorizationError("Only a super-admin can create admin accounts")

        email = normalize_email(email)
        full_name = require_non_empty(full_name, "fullName")
        require_min_length(password, "password", MIN_PASSWORD_LENGTH)

        created_at = now or utc_now()
        uid = self._users.create_user(
            email=email,
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role,
            created_at=created_at,
        )
        if uid is None:
            raise ConflictError("Email is already registered")

        self._audit.record(
            AuditAction.CREATE_USER,
            user_id=current_uid,
            resource_type="user",
            resource_id=uid,
            changes={"email": email, "role": role.value},
            ip_address=ip_address,
        )
        logger.info("account %s created with role %s", uid, role.value)

        created = self._users.get_by_id(uid)
        if created is None:
            raise NotFoundError("User not found")
        return created

    def set_active(
        self,
        *,
        current_role: Role,
        current_uid: str,
        uid: str,
        is_active: bool,
        ip_address: str = "unknown",
    ) -> User:
        if not is_allowed(current_role, Action.MANAGE_USERS):
            raise AuthorizationError("Insufficient permissions")
        if uid == current_uid and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        user = self._users.get_by_id(uid)
        if not user:
            raise NotFoundError("User not found")
        if user.role in _ELEVATED_ROLES and not is_allowed(current_role, Action.GRANT_ADMIN_ROLES):
            raise AuthorizationError("Only a super-admin can change admin accounts")

        self._users.set_active(uid, is_active=is_active)
        self._audit.record(
            AuditAction.SET_USER_ACTIVE,
            user_id=current_uid,
            resource_type="user",
            resource_id=uid,
            changes={"active": is_active},
            ip_address=ip_address,
        )
        return self._users.get_by_id(uid) or user

    def list_users(self, *, limit: int = 200) -> Sequence[User]:
        return self._users.list_users(limit=limit)
