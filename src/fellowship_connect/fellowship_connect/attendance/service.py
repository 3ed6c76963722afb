from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..common.datetime_utils import to_iso, utc_now
from ..core.constants import DEFAULT_SESSION_LIST_LIMIT
from ..core.enums import Action, CheckInMethod, Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SessionInactiveError,
    ValidationError,
)
from ..core.policy import is_allowed
from ..users.repository import UserRepository
from .model import AttendanceRecord, AttendanceSession, OfflineCheckIn
from .qr import new_qr_code_data, render_qr_png
from .repository import AttendanceRepository, SessionRepository

logger = logging.getLogger(__name__)

STAFF_CHECK_IN_METHODS = frozenset({CheckInMethod.MANUAL, CheckInMethod.ADMIN})


def _ensure_open(session: AttendanceSession, now: datetime) -> None:
    if not session.is_active:
        raise SessionInactiveError("Session is not active")
    if session.is_expired(now):
        raise SessionInactiveError("Session has expired")


class AttendanceSessionService:
    """QR session manager: create, close and publish attendance sessions."""

    def __init__(self, sessions: SessionRepository, audit: AuditService, *, qr_box_size: int = 10):
        self._sessions = sessions
        self._audit = audit
        self._qr_box_size = int(qr_box_size)

    def create_session(
        self,
        *,
        name: str,
        location: str,
        duration_minutes: int,
        creator_id: str,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or utc_now()
        qr_code_data = new_qr_code_data(name, now)
        session_id = self._sessions.create_session(
            name=name,
            location=location,
            duration_minutes=duration_minutes,
            created_by=creator_id,
            created_at=now,
            qr_code_data=qr_code_data,
        )
        self._audit.record(
            AuditAction.CREATE_SESSION,
            user_id=creator_id,
            resource_type="attendance_session",
            resource_id=session_id,
            changes={"name": name, "location": location, "durationMinutes": duration_minutes},
            ip_address=ip_address,
            now=now,
        )
        return self.get_session(session_id)

    def get_session(self, session_id: str) -> AttendanceSession:
        session = self._sessions.get_by_id(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    def close_session(
        self,
        session_id: str,
        *,
        closed_by: str,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or utc_now()
        self.get_session(session_id)
        self._sessions.close_session(session_id, closed_at=now)
        self._audit.record(
            AuditAction.CLOSE_SESSION,
            user_id=closed_by,
            resource_type="attendance_session",
            resource_id=session_id,
            ip_address=ip_address,
            now=now,
        )
        return self.get_session(session_id)

    def generate_qr_code(
        self,
        session_id: str,
        *,
        requested_by: str,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> dict:
        """Identifying payload of an open session, rendered client-side as a QR image."""
        now = now or utc_now()
        session = self.get_session(session_id)
        _ensure_open(session, now)

        self._audit.record(
            AuditAction.GENERATE_QR,
            user_id=requested_by,
            resource_type="attendance_session",
            resource_id=session_id,
            ip_address=ip_address,
            now=now,
        )
        return {
            "sessionId": session.session_id,
            "qrCodeData": session.qr_code_data,
            "name": session.name,
            "location": session.location,
            "expiresAt": to_iso(session.ends_at),
        }

    def render_qr_code(self, session_id: str, *, now: datetime | None = None) -> bytes:
        now = now or utc_now()
        session = self.get_session(session_id)
        _ensure_open(session, now)
        return render_qr_png(session.qr_code_data, box_size=self._qr_box_size)

    def list_sessions(
        self,
        *,
        created_by: Optional[str] = None,
        limit: int = DEFAULT_SESSION_LIST_LIMIT,
    ) -> Sequence[AttendanceSession]:
        return self._sessions.list_sessions(created_by=created_by, limit=limit)


@dataclass
class SyncResult:
    synced_count: int = 0
    skipped: list[dict] = field(default_factory=list)


class CheckInService:
    """Check-in recorder and offline sync reconciler."""

    def __init__(
        self,
        sessions: SessionRepository,
        attendance: AttendanceRepository,
        audit: AuditService,
        users: UserRepository,
    ):
        self._sessions = sessions
        self._attendance = attendance
        self._audit = audit
        self._users = users

    def _resolve_session(self, session_id: Optional[str], qr_code_data: Optional[str]) -> AttendanceSession:
        if session_id:
            session = self._sessions.get_by_id(session_id)
            if session is None:
                raise NotFoundError("Session not found")
            if qr_code_data and qr_code_data != session.qr_code_data:
                raise ValidationError("Invalid QR code", {"qrCodeData": "mismatch"})
            return session

        if not qr_code_data:
            raise ValidationError("sessionId is required", {"sessionId": "required"})
        session = self._sessions.get_by_qr_code(qr_code_data)
        if session is None:
            raise NotFoundError("Invalid QR code")
        return session

    def _record(
        self,
        session: AttendanceSession,
        *,
        user_id: str,
        method: CheckInMethod,
        actor_id: str,
        ip_address: str,
        now: datetime,
    ) -> AttendanceRecord:
        record_id = self._attendance.create_if_absent(
            user_id=user_id,
            session_id=session.session_id,
            checked_in_at=now,
            method=method,
            ip_address=ip_address,
        )
        if record_id is None:
            raise ConflictError("User already checked in for this session")

        changes = {"sessionId": session.session_id, "method": method.value}
        if actor_id != user_id:
            changes["checkedInBy"] = actor_id
        self._audit.record(
            AuditAction.CHECK_IN,
            user_id=actor_id,
            resource_type="attendance",
            resource_id=record_id,
            changes=changes,
            ip_address=ip_address,
            now=now,
        )
        logger.info("user %s checked in to session %s via %s", user_id, session.session_id, method.value)

        return AttendanceRecord(
            record_id=record_id,
            user_id=user_id,
            session_id=session.session_id,
            checked_in_at=now,
            method=method,
            ip_address=ip_address,
        )

    def check_in(
        self,
        *,
        user_id: str,
        session_id: Optional[str] = None,
        qr_code_data: Optional[str] = None,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """A member checking themselves in; always recorded as a QR check-in."""
        now = now or utc_now()
        session = self._resolve_session(session_id, qr_code_data)
        _ensure_open(session, now)
        return self._record(
            session, user_id=user_id, method=CheckInMethod.QR, actor_id=user_id, ip_address=ip_address, now=now
        )

    def check_in_member(
        self,
        *,
        staff_id: str,
        staff_role: Role,
        user_id: str,
        session_id: Optional[str] = None,
        qr_code_data: Optional[str] = None,
        method: CheckInMethod = CheckInMethod.ADMIN,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """A leader recording another member's presence."""
        if not is_allowed(staff_role, Action.CHECK_IN_FOR_OTHERS):
            raise AuthorizationError("Insufficient permissions to check in other members")
        if method not in STAFF_CHECK_IN_METHODS:
            raise ValidationError("method must be one of: manual, admin", {"method": "choice"})

        member = self._users.get_by_id(user_id)
        if member is None or not member.is_active:
            raise NotFoundError("User not found")

        now = now or utc_now()
        session = self._resolve_session(session_id, qr_code_data)
        _ensure_open(session, now)
        return self._record(session, user_id=user_id, method=method, actor_id=staff_id, ip_address=ip_address, now=now)

    def _sync_one(
        self,
        item: OfflineCheckIn,
        known_sessions: dict[str, Optional[AttendanceSession]],
        *,
        ip_address: str,
        now: datetime,
    ) -> Optional[str]:
        """Write one buffered check-in; returns the skip reason, or None when written."""
        if item.session_id not in known_sessions:
            known_sessions[item.session_id] = self._sessions.get_by_id(item.session_id)
        session = known_sessions[item.session_id]
        if session is None:
            return "Session not found"
        if not session.was_open_at(item.checked_in_at):
            return "Outside session window"

        record_id = self._attendance.create_if_absent(
            user_id=item.user_id,
            session_id=item.session_id,
            checked_in_at=item.checked_in_at,
            method=CheckInMethod.OFFLINE,
            ip_address=ip_address,
            synced_at=now,
        )
        if record_id is None:
            return "User already checked in for this session"
        return None

    def sync_offline(
        self,
        items: Sequence[OfflineCheckIn],
        *,
        caller_id: str,
        caller_role: Role,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> SyncResult:
        """Replay buffered check-ins in array order; partial success is expected."""
        now = now or utc_now()
        if any(item.user_id != caller_id for item in items) and not is_allowed(
            caller_role, Action.OFFLINE_SYNC_FOR_OTHERS
        ):
            raise AuthorizationError("Insufficient permissions to sync records for other users")

        result = SyncResult()
        known_sessions: dict[str, Optional[AttendanceSession]] = {}

        for index, item in enumerate(items):
            try:
                reason = self._sync_one(item, known_sessions, ip_address=ip_address, now=now)
            except Exception:
                # items are independent: report the failure and keep going
                logger.exception("offline item %d for session %s failed", index, item.session_id)
                reason = "Failed to sync"

            if reason is None:
                result.synced_count += 1
            else:
                result.skipped.append({"index": index, "sessionId": item.session_id, "reason": reason})

        self._audit.record(
            AuditAction.SYNC_OFFLINE,
            user_id=caller_id,
            resource_type="attendance",
            resource_id="batch",
            changes={"received": len(items), "synced": result.synced_count},
            ip_address=ip_address,
            now=now,
        )
        logger.info("offline sync by %s: %d of %d records written", caller_id, result.synced_count, len(items))
        return result
