"""Session authenticator: signed session tokens carried in an http-only cookie."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.constants import DEFAULT_SESSION_TTL_SECONDS, SESSION_TOKEN_ALGORITHM
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from ..users.model import User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """What a verified session resolves to."""

    uid: str
    email: str
    role: Role

    def to_public(self) -> dict:
        return {"uid": self.uid, "email": self.email, "role": self.role.value}


class SessionTokens:
    """Issues and verifies HS256 session tokens.

    Claims: ``sub`` (uid), ``email``, ``role``, ``ver`` (user token version),
    ``iat`` and ``exp``.
    """

    def __init__(self, secret: str, *, ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS):
        if not secret:
            raise ValueError("session secret must not be empty")
        self._secret = secret
        self._ttl = timedelta(seconds=int(ttl_seconds))

    @property
    def ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def issue(self, user: User, *, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        if issued.tzinfo is None:
            issued = issued.replace(tzinfo=timezone.utc)
        payload = {
            "sub": user.uid,
            "email": user.email,
            "role": user.role.value,
            "ver": user.token_version,
            "iat": issued,
            "exp": issued + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=SESSION_TOKEN_ALGORITHM)

    def decode(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[SESSION_TOKEN_ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Session expired") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid session") from None


class SessionAuthenticator:
    """Resolve a session cookie value to an authenticated user.

    Any failure is an AuthenticationError; there is no partial success. The
    stored user record is authoritative: a missing or inactive account, or a
    token minted before the last logout, is rejected.
    """

    def __init__(self, tokens: SessionTokens, users: UserRepository):
        self._tokens = tokens
        self._users = users

    def authenticate(self, token: Optional[str]) -> AuthenticatedUser:
        if not token:
            raise AuthenticationError("Authentication required")

        claims = self._tokens.decode(token)
        user = self._users.get_by_id(str(claims["sub"]))
        if user is None or not user.is_active:
            logger.info("session rejected for uid=%s: account missing or inactive", claims["sub"])
            raise AuthenticationError("Invalid session")

        if int(claims.get("ver", -1)) != user.token_version:
            raise AuthenticationError("Session revoked")

        return AuthenticatedUser(uid=user.uid, email=user.email, role=user.role)
