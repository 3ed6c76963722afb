from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CheckInMethod
from .model import AttendanceRecord, AttendanceSession


class SessionRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, session_id: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_by_qr_code(self, qr_code_data: str) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def close_session(self, session_id: str, *, closed_at: datetime) -> bool:
        raise NotImplementedError

    def list_sessions(self, *, created_by: Optional[str] = None, limit: int = 100) -> Sequence[AttendanceSession]:
        raise NotImplementedError


class AttendanceRepository(Protocol):
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
        """Single conditional write keyed on (user_id, session_id).

        Returns the new record id, or None when the pair already has a record.
        """

        raise NotImplementedError

    def list_for_session(self, session_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_in_range(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
