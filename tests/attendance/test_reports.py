from __future__ import annotations

import csv
import io
import json
from datetime import timedelta

import pytest

from src.fellowship_connect.fellowship_connect.attendance.reports import EXPORT_COLUMNS, AttendanceReportService
from src.fellowship_connect.fellowship_connect.attendance.service import AttendanceSessionService
from src.fellowship_connect.fellowship_connect.core.enums import CheckInMethod
from src.fellowship_connect.fellowship_connect.core.exceptions import NotFoundError, ValidationError


@pytest.fixture
def reports(sessions_repo, attendance_repo, audit_service):
    return AttendanceReportService(sessions_repo, attendance_repo, audit_service)


@pytest.fixture
def session(sessions_repo, audit_service, fixed_now):
    return AttendanceSessionService(sessions_repo, audit_service).create_session(
        name="Sunday Service", location="Main Hall", duration_minutes=120, creator_id="c1", now=fixed_now
    )


@pytest.fixture
def records(attendance_repo, session, fixed_now):
    for offset, user_id, method in (
        (0, "m1", CheckInMethod.QR),
        (5, "m2", CheckInMethod.QR),
        (10, "m3", CheckInMethod.MANUAL),
    ):
        attendance_repo.create_if_absent(
            user_id=user_id,
            session_id=session.session_id,
            checked_in_at=fixed_now + timedelta(minutes=offset),
            method=method,
            ip_address="unknown",
        )


def test_stats_aggregates_by_method_and_date(reports, records, fixed_now):
    stats = reports.stats(now=fixed_now + timedelta(hours=1))

    assert stats["totalAttendance"] == 3
    assert stats["uniqueMembers"] == 3
    assert stats["byMethod"] == {"manual": 1, "qr": 2}
    assert stats["byDate"] == {"2026-03-01": 3}


def test_stats_scoped_to_one_user(reports, records, fixed_now):
    stats = reports.stats(user_id="m2", now=fixed_now + timedelta(hours=1))

    assert stats["totalAttendance"] == 1
    assert stats["uniqueMembers"] == 1


def test_stats_window_excludes_older_records(reports, records, fixed_now):
    stats = reports.stats(start=fixed_now + timedelta(minutes=4), end=fixed_now + timedelta(hours=1))

    assert stats["totalAttendance"] == 2


def test_stats_rejects_inverted_window(reports, fixed_now):
    with pytest.raises(ValidationError):
        reports.stats(start=fixed_now, end=fixed_now - timedelta(days=1))


def test_session_report_lists_records(reports, session, records, fixed_now):
    report = reports.session_report(session.session_id, now=fixed_now)

    assert report["count"] == 3
    assert report["session"]["id"] == session.session_id
    assert [r["userId"] for r in report["records"]] == ["m1", "m2", "m3"]


def test_csv_export_has_expected_columns(reports, session, records, audit_repo):
    export = reports.export(session.session_id, fmt="csv", requested_by="a1")

    assert export.filename == f"attendance-export-{session.session_id}.csv"
    rows = list(csv.DictReader(io.StringIO(export.content.decode("utf-8-sig"))))
    assert tuple(rows[0].keys()) == EXPORT_COLUMNS
    assert {r["Location"] for r in rows} == {"Main Hall"}
    assert audit_repo.actions()[-1] == "EXPORT_ATTENDANCE"


def test_json_export(reports, session, records):
    export = reports.export(session.session_id, fmt="json", requested_by="a1")

    assert export.mimetype == "application/json"
    assert len(json.loads(export.content)) == 3


def test_export_rejects_unknown_format_and_session(reports, session):
    with pytest.raises(ValidationError):
        reports.export(session.session_id, fmt="xlsx", requested_by="a1")
    with pytest.raises(NotFoundError):
        reports.export("missing", fmt="csv", requested_by="a1")
