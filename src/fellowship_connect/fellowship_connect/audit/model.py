from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class AuditAction(str, Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    CREATE_USER = "CREATE_USER"
    SET_USER_ACTIVE = "SET_USER_ACTIVE"
    CREATE_SESSION = "CREATE_SESSION"
    CLOSE_SESSION = "CLOSE_SESSION"
    GENERATE_QR = "GENERATE_QR"
    CHECK_IN = "CHECK_IN"
    SYNC_OFFLINE = "SYNC_OFFLINE"
    EXPORT_ATTENDANCE = "EXPORT_ATTENDANCE"


@dataclass(frozen=True)
class AuditLog:
    log_id: str
    action: AuditAction
    user_id: Optional[str]
    resource_type: str
    resource_id: str
    created_at: datetime
    ip_address: str = "unknown"
    changes: dict[str, Any] = field(default_factory=dict)

    def to_public(self) -> dict:
        return {
            "id": self.log_id,
            "action": self.action.value,
            "userId": self.user_id,
            "resourceType": self.resource_type,
            "resourceId": self.resource_id,
            "changes": self.changes,
            "ipAddress": self.ip_address,
            "createdAt": self.created_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
