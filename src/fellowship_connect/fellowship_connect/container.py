from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLSessionRepository
from .attendance.reports import AttendanceReportService
from .attendance.repository import AttendanceRepository, SessionRepository
from .attendance.service import AttendanceSessionService, CheckInService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditService
from .auth.session import SessionAuthenticator, SessionTokens
from .core.constants import DEFAULT_SESSION_TTL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sessions_repo: SessionRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditRepository

    tokens: SessionTokens
    authenticator: SessionAuthenticator

    audit_service: AuditService
    auth_service: AuthService
    user_service: UserService
    session_service: AttendanceSessionService
    checkin_service: CheckInService
    report_service: AttendanceReportService

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()


def wire(
    *,
    users_repo: UserRepository,
    sessions_repo: SessionRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditRepository,
    auth_secret: str,
    token_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Assemble services over already-built repositories."""
    tokens = SessionTokens(auth_secret, ttl_seconds=token_ttl_seconds)
    audit_service = AuditService(audit_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        sessions_repo=sessions_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        tokens=tokens,
        authenticator=SessionAuthenticator(tokens, users_repo),
        audit_service=audit_service,
        auth_service=AuthService(users_repo, audit_service),
        user_service=UserService(users_repo, audit_service),
        session_service=AttendanceSessionService(sessions_repo, audit_service),
        checkin_service=CheckInService(sessions_repo, attendance_repo, audit_service, users_repo),
        report_service=AttendanceReportService(sessions_repo, attendance_repo, audit_service),
    )


def build_container(
    *,
    db_config: dict,
    auth_secret: str,
    token_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        sessions_repo=MySQLSessionRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        auth_secret=auth_secret,
        token_ttl_seconds=token_ttl_seconds,
        conn=conn,
    )
