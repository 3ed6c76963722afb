from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import CheckInMethod


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: a time-boxed window against which check-ins are recorded."""

    session_id: str
    name: str
    location: str
    duration_minutes: int
    created_by: str
    created_at: datetime
    is_active: bool
    qr_code_data: str
    closed_at: Optional[datetime] = None

    @property
    def ends_at(self) -> datetime:
        return self.created_at + timedelta(minutes=self.duration_minutes)

    @property
    def window_end(self) -> datetime:
        """Earlier of the scheduled end and the moment it was closed."""
        if self.closed_at is not None and self.closed_at < self.ends_at:
            return self.closed_at
        return self.ends_at

    def was_open_at(self, moment: datetime) -> bool:
        return self.created_at <= moment < self.window_end

    def is_expired(self, now: datetime) -> bool:
        return now >= self.ends_at

    def is_open(self, now: datetime) -> bool:
        """Closed flag and expiry are both evaluated at read time."""
        return self.is_active and not self.is_expired(now)

    def to_public(self, now: datetime) -> dict:
        return {
            "id": self.session_id,
            "name": self.name,
            "location": self.location,
            "durationMinutes": self.duration_minutes,
            "createdBy": self.created_by,
            "createdAt": to_iso(self.created_at),
            "endsAt": to_iso(self.ends_at),
            "isActive": self.is_open(now),
            "closedAt": to_iso(self.closed_at),
        }


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's presence at one session."""

    record_id: str
    user_id: str
    session_id: str
    checked_in_at: datetime
    method: CheckInMethod
    ip_address: str = "unknown"
    synced_at: Optional[datetime] = None

    def to_public(self) -> dict:
        return {
            "id": self.record_id,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "checkedInAt": to_iso(self.checked_in_at),
            "method": self.method.value,
            "ipAddress": self.ip_address,
            "syncedAt": to_iso(self.synced_at),
        }


@dataclass(frozen=True)
class OfflineCheckIn:
    """A check-in buffered by a client while offline, replayed on sync."""

    user_id: str
    session_id: str
    checked_in_at: datetime
