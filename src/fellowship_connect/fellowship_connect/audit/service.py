from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import utc_now
from .model import AuditAction, AuditLog
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Use case: append-only trail of privileged and attendance actions."""

    def __init__(self, logs: AuditRepository):
        self._logs = logs

    def record(
        self,
        action: AuditAction,
        *,
        user_id: Optional[str],
        resource_type: str,
        resource_id: str,
        changes: Optional[dict[str, Any]] = None,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> str:
        log_id = self._logs.create(
            action=action,
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            changes=changes or {},
            ip_address=ip_address,
            created_at=now or utc_now(),
        )
        logger.info("audit %s %s/%s by %s", action.value, resource_type, resource_id, user_id or "-")
        return log_id

    def list_recent(self, *, limit: int, action: Optional[AuditAction] = None) -> Sequence[AuditLog]:
        return self._logs.list_recent(limit=limit, action=action)
