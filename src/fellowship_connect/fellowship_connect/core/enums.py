from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used by the role gate."""

    MEMBER = "member"
    CHAPLAIN = "chaplain"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"


class CheckInMethod(str, Enum):
    """How an attendance record was captured."""

    QR = "qr"
    MANUAL = "manual"
    ADMIN = "admin"
    OFFLINE = "offline"


class Action(str, Enum):
    """Capabilities checked by the role gate, one per guarded operation."""

    CREATE_SESSION = "attendance:create_session"
    CLOSE_SESSION = "attendance:close_session"
    VIEW_QR = "attendance:view_qr"
    CHECK_IN = "attendance:check_in"
    CHECK_IN_FOR_OTHERS = "attendance:check_in_for_others"
    OFFLINE_SYNC = "attendance:offline_sync"
    OFFLINE_SYNC_FOR_OTHERS = "attendance:offline_sync_for_others"
    LIST_SESSIONS = "attendance:list_sessions"
    SESSION_REPORT = "attendance:session_report"
    STATS_FOR_OTHERS = "attendance:stats_for_others"
    EXPORT_ATTENDANCE = "attendance:export"
    VIEW_AUDIT_LOGS = "audit:view"
    MANAGE_USERS = "users:manage"
    GRANT_ADMIN_ROLES = "users:grant_admin"
