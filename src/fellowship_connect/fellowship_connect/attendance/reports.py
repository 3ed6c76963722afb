from __future__ import annotations

import csv
import io
import json
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..common.datetime_utils import to_iso, utc_now
from ..core.constants import DEFAULT_STATS_DAYS
from ..core.exceptions import NotFoundError, ValidationError
from .repository import AttendanceRepository, SessionRepository

EXPORT_COLUMNS = ("ID", "User ID", "Session ID", "Checked In At", "Location", "Method")
EXPORT_FORMATS = ("csv", "json")


@dataclass(frozen=True)
class ExportFile:
    filename: str
    mimetype: str
    content: bytes


class AttendanceReportService:
    """Read-side aggregates over attendance records."""

    def __init__(self, sessions: SessionRepository, attendance: AttendanceRepository, audit: AuditService):
        self._sessions = sessions
        self._attendance = attendance
        self._audit = audit

    def stats(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> dict:
        """Totals for records whose check-in time falls in ``[start, end]``.

        Without bounds the window is the last ``DEFAULT_STATS_DAYS`` days.
        """
        now = now or utc_now()
        end = end or now
        start = start or end - timedelta(days=DEFAULT_STATS_DAYS)
        if start > end:
            raise ValidationError("start must not be after end", {"start": "after end"})

        records = self._attendance.list_in_range(start=start, end=end, user_id=user_id)
        by_method = Counter(r.method.value for r in records)
        by_date = Counter(r.checked_in_at.date().isoformat() for r in records)

        return {
            "start": to_iso(start),
            "end": to_iso(end),
            "totalAttendance": len(records),
            "uniqueMembers": len({r.user_id for r in records}),
            "byMethod": dict(sorted(by_method.items())),
            "byDate": dict(sorted(by_date.items())),
        }

    def session_report(self, session_id: str, *, now: datetime | None = None) -> dict:
        now = now or utc_now()
        session = self._sessions.get_by_id(session_id)
        if session is None:
            raise NotFoundError("Session not found")

        records = self._attendance.list_for_session(session_id)
        return {
            "session": session.to_public(now),
            "records": [r.to_public() for r in records],
            "count": len(records),
        }

    def export(
        self,
        session_id: str,
        *,
        fmt: str = "csv",
        requested_by: str,
        ip_address: str = "unknown",
        now: datetime | None = None,
    ) -> ExportFile:
        fmt = (fmt or "csv").strip().lower()
        if fmt not in EXPORT_FORMATS:
            raise ValidationError("format must be one of: csv, json", {"format": "invalid"})

        session = self._sessions.get_by_id(session_id)
        if session is None:
            raise NotFoundError("Session not found")

        rows = [
            {
                "ID": r.record_id,
                "User ID": r.user_id,
                "Session ID": r.session_id,
                "Checked In At": to_iso(r.checked_in_at),
                "Location": session.location,
                "Method": r.method.value,
            }
            for r in self._attendance.list_for_session(session_id)
        ]

        if fmt == "csv":
            out = io.StringIO()
            writer = csv.DictWriter(out, fieldnames=list(EXPORT_COLUMNS))
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
            content = out.getvalue().encode("utf-8-sig")
            mimetype = "text/csv"
        else:
            content = json.dumps(rows, ensure_ascii=False, indent=2).encode("utf-8")
            mimetype = "application/json"

        self._audit.record(
            AuditAction.EXPORT_ATTENDANCE,
            user_id=requested_by,
            resource_type="attendance_session",
            resource_id=session_id,
            changes={"format": fmt, "rows": len(rows)},
            ip_address=ip_address,
            now=now,
        )
        return ExportFile(filename=f"attendance-export-{session_id}.{fmt}", mimetype=mimetype, content=content)
