from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, uid: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        password_hash: str,
        role: Role,
        created_at: datetime,
    ) -> Optional[str]:
        """Insert a user; returns the new uid, or None when the email is taken."""

        raise NotImplementedError

    def set_active(self, uid: str, *, is_active: bool) -> bool:
        raise NotImplementedError

    def bump_token_version(self, uid: str) -> bool:
        raise NotImplementedError

    def list_users(self, *, limit: int) -> Sequence[User]:
        raise NotImplementedError
