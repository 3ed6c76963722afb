from __future__ import annotations

from datetime import timedelta

import pytest

from src.fellowship_connect.fellowship_connect.attendance.model import OfflineCheckIn
from src.fellowship_connect.fellowship_connect.attendance.schemas import parse_offline_items
from src.fellowship_connect.fellowship_connect.attendance.service import AttendanceSessionService, CheckInService
from src.fellowship_connect.fellowship_connect.core.enums import CheckInMethod, Role
from src.fellowship_connect.fellowship_connect.core.exceptions import AuthorizationError, ValidationError


@pytest.fixture
def sessions(sessions_repo, audit_service):
    return AttendanceSessionService(sessions_repo, audit_service)


@pytest.fixture
def service(sessions_repo, attendance_repo, audit_service, users_repo):
    return CheckInService(sessions_repo, attendance_repo, audit_service, users_repo)


@pytest.fixture
def session(sessions, fixed_now):
    return sessions.create_session(name="Retreat", location="Camp", duration_minutes=60, creator_id="c1", now=fixed_now)


def test_sync_counts_only_written_records(service, session, fixed_now, attendance_repo):
    service.check_in(user_id="m1", session_id=session.session_id, now=fixed_now)
    items = [
        OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now),
        OfflineCheckIn(user_id="m2", session_id=session.session_id, checked_in_at=fixed_now),
        OfflineCheckIn(user_id="m3", session_id=session.session_id, checked_in_at=fixed_now),
    ]

    result = service.sync_offline(items, caller_id="c1", caller_role=Role.CHAPLAIN, now=fixed_now + timedelta(hours=2))

    assert result.synced_count == 2
    assert result.skipped == [
        {"index": 0, "sessionId": session.session_id, "reason": "User already checked in for this session"}
    ]
    assert len(attendance_repo.list_for_session(session.session_id)) == 3


def test_synced_records_keep_offline_timestamp(service, session, fixed_now, attendance_repo):
    taken_at = fixed_now + timedelta(minutes=7)
    synced_at = fixed_now + timedelta(days=1)

    service.sync_offline(
        [OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=taken_at)],
        caller_id="m1",
        caller_role=Role.MEMBER,
        now=synced_at,
    )

    record = attendance_repo.get_for_user_and_session("m1", session.session_id)
    assert record.checked_in_at == taken_at
    assert record.synced_at == synced_at
    assert record.method == CheckInMethod.OFFLINE


def test_duplicates_within_one_batch_write_once(service, session, fixed_now):
    item = OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now)

    result = service.sync_offline([item, item], caller_id="m1", caller_role=Role.MEMBER, now=fixed_now)

    assert result.synced_count == 1
    assert [s["index"] for s in result.skipped] == [1]


def test_closed_sessions_still_accept_offline_records(service, sessions, session, fixed_now):
    sessions.close_session(session.session_id, closed_by="c1", now=fixed_now + timedelta(minutes=30))

    result = service.sync_offline(
        [OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now + timedelta(minutes=10))],
        caller_id="m1",
        caller_role=Role.MEMBER,
        now=fixed_now + timedelta(hours=3),
    )

    assert result.synced_count == 1


def test_unknown_session_is_skipped_not_fatal(service, session, fixed_now):
    result = service.sync_offline(
        [
            OfflineCheckIn(user_id="m1", session_id="missing", checked_in_at=fixed_now),
            OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now),
        ],
        caller_id="m1",
        caller_role=Role.MEMBER,
        now=fixed_now,
    )

    assert result.synced_count == 1
    assert result.skipped == [{"index": 0, "sessionId": "missing", "reason": "Session not found"}]


def test_member_cannot_sync_for_someone_else(service, session, fixed_now, attendance_repo):
    with pytest.raises(AuthorizationError):
        service.sync_offline(
            [OfflineCheckIn(user_id="m2", session_id=session.session_id, checked_in_at=fixed_now)],
            caller_id="m1",
            caller_role=Role.MEMBER,
            now=fixed_now,
        )

    assert attendance_repo.list_for_session(session.session_id) == []


def test_parse_offline_items_defaults_user_and_accepts_wrapped_payload():
    items = parse_offline_items(
        {"records": [{"sessionId": "s1", "timestamp": "2026-03-01T18:05:00Z"}]},
        default_user_id="m1",
        max_items=10,
    )

    assert items[0].user_id == "m1"
    assert items[0].checked_in_at.isoformat() == "2026-03-01T18:05:00"


def test_parse_offline_items_rejects_bad_timestamp_and_oversized_batches():
    with pytest.raises(ValidationError):
        parse_offline_items([{"sessionId": "s1", "timestamp": "yesterday"}], default_user_id="m1", max_items=10)
    with pytest.raises(ValidationError):
        parse_offline_items(
            [{"sessionId": "s1", "timestamp": "2026-03-01T18:05:00Z"}] * 3, default_user_id="m1", max_items=2
        )


class FailingAttendance:
    """Delegates to the in-memory store but blows up for one user."""

    def __init__(self, inner, failing_user_id):
        self._inner = inner
        self._failing_user_id = failing_user_id

    def create_if_absent(self, **kwargs):
        if kwargs["user_id"] == self._failing_user_id:
            raise RuntimeError("connection lost")
        return self._inner.create_if_absent(**kwargs)


def test_storage_failure_on_one_item_does_not_abort_batch(
    sessions_repo, attendance_repo, audit_service, users_repo, session, fixed_now
):
    service = CheckInService(sessions_repo, FailingAttendance(attendance_repo, "m2"), audit_service, users_repo)
    items = [
        OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now),
        OfflineCheckIn(user_id="m2", session_id=session.session_id, checked_in_at=fixed_now),
        OfflineCheckIn(user_id="m3", session_id=session.session_id, checked_in_at=fixed_now),
    ]

    result = service.sync_offline(items, caller_id="c1", caller_role=Role.CHAPLAIN, now=fixed_now)

    assert result.synced_count == 2
    assert result.skipped == [{"index": 1, "sessionId": session.session_id, "reason": "Failed to sync"}]
    assert len(attendance_repo.list_for_session(session.session_id)) == 2


@pytest.mark.parametrize("offset", [timedelta(minutes=-1), timedelta(minutes=60), timedelta(days=30)])
def test_timestamps_outside_session_window_are_skipped(service, session, fixed_now, attendance_repo, offset):
    result = service.sync_offline(
        [OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now + offset)],
        caller_id="m1",
        caller_role=Role.MEMBER,
        now=fixed_now + timedelta(days=31),
    )

    assert result.synced_count == 0
    assert result.skipped[0]["reason"] == "Outside session window"
    assert attendance_repo.list_for_session(session.session_id) == []


def test_window_ends_when_session_is_closed_early(service, sessions, session, fixed_now):
    sessions.close_session(session.session_id, closed_by="c1", now=fixed_now + timedelta(minutes=20))

    result = service.sync_offline(
        [
            OfflineCheckIn(user_id="m1", session_id=session.session_id, checked_in_at=fixed_now + timedelta(minutes=19)),
            OfflineCheckIn(user_id="m2", session_id=session.session_id, checked_in_at=fixed_now + timedelta(minutes=25)),
        ],
        caller_id="c1",
        caller_role=Role.CHAPLAIN,
        now=fixed_now + timedelta(hours=2),
    )

    assert result.synced_count == 1
    assert result.skipped == [{"index": 1, "sessionId": session.session_id, "reason": "Outside session window"}]


def test_parse_offline_items_rejects_unstorable_years():
    with pytest.raises(ValidationError, match="out of range"):
        parse_offline_items([{"sessionId": "s1", "timestamp": "0500-03-01T10:00:00Z"}], default_user_id="m1", max_items=10)
