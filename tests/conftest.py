from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.fellowship_connect.fellowship_connect.attendance.model import AttendanceRecord, AttendanceSession
from src.fellowship_connect.fellowship_connect.audit.model import AuditLog
from src.fellowship_connect.fellowship_connect.audit.service import AuditService
from src.fellowship_connect.fellowship_connect.common.datetime_utils import utc_now
from src.fellowship_connect.fellowship_connect.container import wire
from src.fellowship_connect.fellowship_connect.core.enums import Role
from src.fellowship_connect.fellowship_connect.users.model import User

TEST_SECRET = "test-token-secret"


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[str, User] = {}

    def get_by_id(self, uid: str) -> Optional[User]:
        return self.by_id.get(uid)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email == email), None)

    def create_user(self, *, email, full_name, password_hash, role, created_at) -> Optional[str]:
        if self.get_by_email(email) is not None:
            return None
        uid = _new_id()
        self.by_id[uid] = User(
            uid=uid,
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            role=role,
            is_active=True,
            token_version=0,
            created_at=created_at,
        )
        return uid

    def set_active(self, uid: str, *, is_active: bool) -> bool:
        user = self.by_id.get(uid)
        if user is None:
            return False
        self.by_id[uid] = replace(user, is_active=is_active)
        return True

    def bump_token_version(self, uid: str) -> bool:
        user = self.by_id.get(uid)
        if user is None:
            return False
        self.by_id[uid] = replace(user, token_version=user.token_version + 1)
        return True

    def list_users(self, *, limit: int):
        return list(self.by_id.values())[:limit]


class InMemorySessions:
    def __init__(self):
        self.by_id: dict[str, AttendanceSession] = {}

    def create_session(self, *, name, location, duration_minutes, created_by, created_at, qr_code_data) -> str:
        session_id = _new_id()
        self.by_id[session_id] = AttendanceSession(
            session_id=session_id,
            name=name,
            location=location,
            duration_minutes=duration_minutes,
            created_by=created_by,
            created_at=created_at,
            is_active=True,
            qr_code_data=qr_code_data,
        )
        return session_id

    def get_by_id(self, session_id: str) -> Optional[AttendanceSession]:
        return self.by_id.get(session_id)

    def get_by_qr_code(self, qr_code_data: str) -> Optional[AttendanceSession]:
        return next((s for s in self.by_id.values() if s.qr_code_data == qr_code_data), None)

    def close_session(self, session_id: str, *, closed_at: datetime) -> bool:
        session = self.by_id.get(session_id)
        if session is None:
            return False
        self.by_id[session_id] = replace(session, is_active=False, closed_at=session.closed_at or closed_at)
        return True

    def list_sessions(self, *, created_by=None, limit=100):
        items = [s for s in self.by_id.values() if created_by is None or s.created_by == created_by]
        items.sort(key=lambda s: s.created_at, reverse=True)
        return items[:limit]


class InMemoryAttendance:
    """Enforces the (user_id, session_id) unique key like the MySQL table does."""

    def __init__(self):
        self.by_pair: dict[tuple[str, str], AttendanceRecord] = {}

    def create_if_absent(self, *, user_id, session_id, checked_in_at, method, ip_address, synced_at=None) -> Optional[str]:
        if (user_id, session_id) in self.by_pair:
            return None
        record_id = _new_id()
        self.by_pair[(user_id, session_id)] = AttendanceRecord(
            record_id=record_id,
            user_id=user_id,
            session_id=session_id,
            checked_in_at=checked_in_at,
            method=method,
            ip_address=ip_address,
            synced_at=synced_at,
        )
        return record_id

    # lookup used by assertions only
    def get_for_user_and_session(self, user_id: str, session_id: str) -> Optional[AttendanceRecord]:
        return self.by_pair.get((user_id, session_id))

    def list_for_session(self, session_id: str):
        items = [r for r in self.by_pair.values() if r.session_id == session_id]
        return sorted(items, key=lambda r: r.checked_in_at)

    def list_in_range(self, *, start, end, user_id=None):
        return [
            r
            for r in self.by_pair.values()
            if start <= r.checked_in_at <= end and (user_id is None or r.user_id == user_id)
        ]


class InMemoryAudit:
    def __init__(self):
        self.logs: list[AuditLog] = []

    def create(self, *, action, user_id, resource_type, resource_id, changes, ip_address, created_at) -> str:
        log_id = _new_id()
        self.logs.append(
            AuditLog(
                log_id=log_id,
                action=action,
                user_id=user_id,
                resource_type=resource_type,
                resource_id=resource_id,
                created_at=created_at,
                ip_address=ip_address,
                changes=dict(changes),
            )
        )
        return log_id

    def list_recent(self, *, limit, action=None):
        items = [log for log in reversed(self.logs) if action is None or log.action == action]
        return items[:limit]

    def actions(self) -> list[str]:
        return [log.action.value for log in self.logs]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 1, 18, 0, 0)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def sessions_repo() -> InMemorySessions:
    return InMemorySessions()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def audit_service(audit_repo) -> AuditService:
    return AuditService(audit_repo)


@pytest.fixture
def make_user(users_repo):
    def _make(role: Role = Role.MEMBER, *, email: Optional[str] = None, password: str = "password123") -> User:
        uid = users_repo.create_user(
            email=email or f"{role.value}-{_new_id()[:8]}@fellowship.local",
            full_name=f"{role.value.title()} Test",
            password_hash=generate_password_hash(password),
            role=role,
            created_at=utc_now(),
        )
        return users_repo.get_by_id(uid)

    return _make


@pytest.fixture
def container(users_repo, sessions_repo, attendance_repo, audit_repo):
    return wire(
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        auth_secret=TEST_SECRET,
        token_ttl_seconds=3600,
    )


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")

    from src.fellowship_connect.fellowship_connect.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client, container, users_repo):
    """Put a valid session cookie for ``user`` on the test client."""

    def _login(user: User) -> User:
        fresh = users_repo.get_by_id(user.uid)
        client.set_cookie("fc_session", container.tokens.issue(fresh))
        return fresh

    return _login


@pytest.fixture
def open_session(sessions_repo, make_user):
    """A session created just now by a chaplain, open for an hour."""

    def _open(*, duration_minutes: int = 60, created_at: Optional[datetime] = None) -> AttendanceSession:
        chaplain = make_user(Role.CHAPLAIN)
        session_id = sessions_repo.create_session(
            name="Sunday Service",
            location="Main Hall",
            duration_minutes=duration_minutes,
            created_by=chaplain.uid,
            created_at=created_at or utc_now(),
            qr_code_data=f"Sunday Service-{_new_id()[:8]}-1",
        )
        return sessions_repo.get_by_id(session_id)

    return _open
