"""Role gate decorator for Flask views.

Authentication runs first (401), then the (role, action) policy check (403).
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import current_app, g, request

from ..core.constants import DEFAULT_SESSION_COOKIE_NAME
from ..core.enums import Action
from ..core.exceptions import AuthorizationError
from ..core.policy import is_allowed
from .session import AuthenticatedUser, SessionAuthenticator

logger = logging.getLogger(__name__)


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", DEFAULT_SESSION_COOKIE_NAME)


def current_user() -> AuthenticatedUser:
    return g.current_user


def require_permission(user: AuthenticatedUser, action: Action) -> None:
    if not is_allowed(user.role, action):
        logger.warning("permission denied: uid=%s role=%s action=%s", user.uid, user.role.value, action.value)
        raise AuthorizationError("Insufficient permissions")


def build_guard(authenticator: SessionAuthenticator):
    def guard(action: Optional[Action] = None):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = authenticator.authenticate(request.cookies.get(cookie_name()))
                if action is not None:
                    require_permission(user, action)
                g.current_user = user
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return guard
