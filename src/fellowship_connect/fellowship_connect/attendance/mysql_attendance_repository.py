from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, AttendanceSession
from .repository import AttendanceRepository, SessionRepository

_SESSION_COLUMNS = (
    "session_id, name, location, duration_minutes, created_by, created_at, is_active, qr_code_data, closed_at"
)
_RECORD_COLUMNS = "record_id, user_id, session_id, checked_in_at, method, ip_address, synced_at"


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=r["session_id"],
        name=r["name"],
        location=r["location"],
        duration_minutes=int(r["duration_minutes"]),
        created_by=r["created_by"],
        created_at=r["created_at"],
        is_active=bool(r["is_active"]),
        qr_code_data=r["qr_code_data"],
        closed_at=r.get("closed_at"),
    )


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=r["record_id"],
        user_id=r["user_id"],
        session_id=r["session_id"],
        checked_in_at=r["checked_in_at"],
        method=CheckInMethod(r["method"]),
        ip_address=r.get("ip_address") or "unknown",
        synced_at=r.get("synced_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_session(
        self,
        *,
        name: str,
        location: str,
        duration_minutes: int,
        created_by: str,
        created_at: datetime,
        qr_code_data: str,
    ) -> str:
        session_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(session_id, name, location, duration_minutes, created_by, created_at, is_active, qr_code_data)
                VALUES(%s,%s,%s,%s,%s,%s,1,%s)
                """,
                (session_id, name, location, int(duration_minutes), created_by, created_at, qr_code_data),
            )
        return session_id

    def get_by_id(self, session_id: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (session_id,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_by_qr_code(self, qr_code_data: str) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE qr_code_data=%s", (qr_code_data,))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def close_session(self, session_id: str, *, closed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET is_active=0, closed_at=COALESCE(closed_at, %s)
                WHERE session_id=%s
                """,
                (closed_at, session_id),
            )
            return cur.rowcount > 0

    def list_sessions(self, *, created_by: Optional[str] = None, limit: int = 100) -> Sequence[AttendanceSession]:
        where = ""
        params: list[object] = []
        if created_by is not None:
            where = "WHERE created_by=%s"
            params.append(created_by)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_if_absent(
        self,
        *,
        user_id: str,
        session_id: str,
        checked_in_at: datetime,
        method: CheckInMethod,
        ip_address: str,
        synced_at: Optional[datetime] = None,
    ) -> Optional[str]:
        record_id = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_records(record_id, user_id, session_id, checked_in_at, method, ip_address, synced_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (record_id, user_id, session_id, checked_in_at, method.value, ip_address, synced_at),
                )
            except IntegrityError as e:
                # uq_attendance_user_session
                if is_duplicate_key(e):
                    return None
                raise
        return record_id

    def list_for_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s
                ORDER BY checked_in_at ASC
                """,
                (session_id,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_in_range(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["checked_in_at BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(user_id)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY checked_in_at DESC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
