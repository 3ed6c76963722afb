from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from .model import AuditAction, AuditLog


class AuditRepository(Protocol):
    def create(
        self,
        *,
        action: AuditAction,
        user_id: Optional[str],
        resource_type: str,
        resource_id: str,
        changes: dict[str, Any],
        ip_address: str,
        created_at: datetime,
    ) -> str:
        raise NotImplementedError

    def list_recent(self, *, limit: int, action: Optional[AuditAction] = None) -> Sequence[AuditLog]:
        raise NotImplementedError
