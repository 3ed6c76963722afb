"""Role gate: one permission table keyed by (role, action)."""

from __future__ import annotations

from .enums import Action, Role

_EVERYONE = frozenset(Role)
_LEADERS = frozenset({Role.CHAPLAIN, Role.ADMIN, Role.SUPER_ADMIN})
_ADMINS = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

PERMISSIONS: dict[Action, frozenset[Role]] = {
    Action.CREATE_SESSION: _LEADERS,
    Action.CLOSE_SESSION: _LEADERS,
    Action.VIEW_QR: _EVERYONE,
    Action.CHECK_IN: _EVERYONE,
    Action.CHECK_IN_FOR_OTHERS: _LEADERS,
    Action.OFFLINE_SYNC: _EVERYONE,
    Action.OFFLINE_SYNC_FOR_OTHERS: _LEADERS,
    Action.LIST_SESSIONS: _LEADERS,
    Action.SESSION_REPORT: _LEADERS,
    Action.STATS_FOR_OTHERS: _LEADERS,
    Action.EXPORT_ATTENDANCE: _ADMINS,
    Action.VIEW_AUDIT_LOGS: _ADMINS,
    Action.MANAGE_USERS: _ADMINS,
    Action.GRANT_ADMIN_ROLES: frozenset({Role.SUPER_ADMIN}),
}


def is_allowed(role: Role, action: Action) -> bool:
    return role in PERMISSIONS.get(action, frozenset())
