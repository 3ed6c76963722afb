from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details


class AuthenticationError(DomainError):
    """Raised when the session token or login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced session, record or user does not exist."""


class ConflictError(DomainError):
    """Raised when a write would violate a uniqueness rule."""


class SessionInactiveError(ConflictError):
    """Raised when an attendance session is closed or past its window."""
