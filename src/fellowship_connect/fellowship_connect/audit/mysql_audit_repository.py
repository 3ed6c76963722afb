from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditAction, AuditLog
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        log_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(log_id, action, user_id, resource_type, resource_id, changes, ip_address, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    log_id,
                    action.value,
                    user_id,
                    resource_type,
                    resource_id,
                    json.dumps(changes, default=str),
                    ip_address,
                    created_at,
                ),
            )
        return log_id

    def list_recent(self, *, limit: int, action: Optional[AuditAction] = None) -> Sequence[AuditLog]:
        where = ""
        params: list[object] = []
        if action is not None:
            where = "WHERE action=%s"
            params.append(action.value)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT log_id, action, user_id, resource_type, resource_id, changes, ip_address, created_at
                FROM audit_logs
                {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            rows = fetchall(cur)

        out: list[AuditLog] = []
        for r in rows:
            changes = r.get("changes")
            if isinstance(changes, (bytes, bytearray)):
                changes = changes.decode("utf-8")
            out.append(
                AuditLog(
                    log_id=r["log_id"],
                    action=AuditAction(r["action"]),
                    user_id=r.get("user_id"),
                    resource_type=r["resource_type"],
                    resource_id=r["resource_id"],
                    created_at=r["created_at"],
                    ip_address=r.get("ip_address") or "unknown",
                    changes=json.loads(changes) if changes else {},
                )
            )
        return out
