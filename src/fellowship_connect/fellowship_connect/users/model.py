from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a member account.

    Note: plain data object, no database access here.
    """

    uid: str
    email: str
    full_name: str
    password_hash: str
    role: Role
    is_active: bool
    token_version: int
    created_at: datetime

    def to_public(self) -> dict:
        return {
            "uid": self.uid,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role.value,
            "active": self.is_active,
            "createdAt": self.created_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
