from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import User
from .repository import UserRepository

_COLUMNS = "uid, email, full_name, password_hash, role, is_active, token_version, created_at"


def _to_user(row: dict) -> User:
    return User(
        uid=row["uid"],
        email=row["email"],
        full_name=row["full_name"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
        token_version=int(row.get("token_version") or 0),
        created_at=row["created_at"],
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, uid: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE uid=%s", (uid,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        password_hash: str,
        role: Role,
        created_at: datetime,
    ) -> Optional[str]:
        uid = uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO users(uid, email, full_name, password_hash, role, is_active, token_version, created_at)
                    VALUES(%s,%s,%s,%s,%s,1,0,%s)
                    """,
                    (uid, email, full_name, password_hash, role.value, created_at),
                )
            except IntegrityError as e:
                if is_duplicate_key(e):
                    return None
                raise
        return uid

    def set_active(self, uid: str, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE uid=%s", (1 if is_active else 0, uid))
            return cur.rowcount > 0

    def bump_token_version(self, uid: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET token_version = token_version + 1 WHERE uid=%s", (uid,))
            return cur.rowcount > 0

    def list_users(self, *, limit: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC LIMIT %s", (int(limit),))
            return [_to_user(r) for r in fetchall(cur)]
