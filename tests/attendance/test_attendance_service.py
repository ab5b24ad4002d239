from __future__ import annotations

from datetime import date, datetime, time

import pytest

from src.staffing_ops.staffing_ops.attendance.aggregator import record_hours, record_jobs, total_hours_for_day, total_jobs_for_day
from src.staffing_ops.staffing_ops.attendance.model import Session
from src.staffing_ops.staffing_ops.attendance.service import AttendanceService
from src.staffing_ops.staffing_ops.attendance.sessions import decode, encode
from src.staffing_ops.staffing_ops.common.change_feed import ChangeFeed
from src.staffing_ops.staffing_ops.core.enums import AttendanceStatus, SessionState
from src.staffing_ops.staffing_ops.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.fakes import InMemoryAttendance, InMemoryMembers, make_ctx, make_member, make_record

DAY = date(2026, 2, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 2, hour, minute)


@pytest.fixture
def members():
    return InMemoryMembers([make_member(1, name="Ana", auth_user_id=10), make_member(2, name="Ben", auth_user_id=20)])


@pytest.fixture
def repo(members):
    return InMemoryAttendance(members=members)


@pytest.fixture
def svc(repo, members):
    return AttendanceService(repo, members)


def test_full_day_with_two_sessions(svc, repo):
    ctx = make_ctx(10, member_id=1)

    svc.check_in(ctx, now=at(9))
    svc.check_out(ctx, now=at(12), jobs=2)
    svc.check_in(ctx, now=at(13))
    svc.check_out(ctx, now=at(17), jobs=1)

    record = repo.get_for_employee_and_date(1, DAY)
    assert record.status == AttendanceStatus.PRESENT
    assert record.sessions == (Session("09:00:00", "12:00:00", 2), Session("13:00:00", "17:00:00", 1))
    assert decode(encode(record.sessions)) == list(record.sessions)
    assert total_hours_for_day(record.sessions, None, None) == 7.0
    assert total_jobs_for_day(record.sessions, None) == 3
    assert record.check_in_time == time(9, 0)
    assert record.check_out_time == time(17, 0)


def test_check_out_time_is_cleared_while_a_session_is_open(svc, repo):
    ctx = make_ctx(10, member_id=1)
    svc.check_in(ctx, now=at(9))
    svc.check_out(ctx, now=at(12))
    svc.check_in(ctx, now=at(13))

    record = repo.get_for_employee_and_date(1, DAY)
    assert record.check_out_time is None
    assert svc.get_today(ctx, today=DAY).state == SessionState.CHECKED_IN


def test_second_check_in_is_rejected(svc, repo):
    ctx = make_ctx(10, member_id=1)
    svc.check_in(ctx, now=at(9))

    with pytest.raises(ValidationError):
        svc.check_in(ctx, now=at(9, 30))

    assert len(repo.get_for_employee_and_date(1, DAY).sessions) == 1


def test_check_out_without_check_in_writes_nothing(svc, repo):
    with pytest.raises(ValidationError, match="No check-in found for today"):
        svc.check_out(make_ctx(10, member_id=1), now=at(12))

    assert repo.writes == 0


def test_unlinked_account_cannot_check_in(svc):
    with pytest.raises(ValidationError, match="not linked"):
        svc.check_in(make_ctx(99, member_id=None), now=at(9))


def test_context_without_member_id_resolves_through_auth_user(svc, repo):
    svc.check_in(make_ctx(20, member_id=None), now=at(9))

    assert repo.get_for_employee_and_date(2, DAY) is not None


def test_legacy_open_record_is_migrated_on_check_out(members):
    repo = InMemoryAttendance(
        [make_record(5, 1, DAY, check_in_time=time(8, 30), notes="Remote today. Jobs Applied: 2")],
        members=members,
    )
    svc = AttendanceService(repo, members)

    svc.check_out(make_ctx(10, member_id=1), now=at(12, 30), jobs=4)

    record = repo.get_by_id(5)
    assert record.sessions == (Session("08:30:00", "12:30:00", 6),)
    assert record.notes == "Remote today."
    assert record_hours(record) == 4.0
    assert record_jobs(record) == 6


def test_legacy_json_notes_record_gets_a_new_session(members):
    repo = InMemoryAttendance(
        [make_record(5, 1, DAY, notes='{"sessions":[{"in":"08:00:00","out":"10:00:00","jobs":1}]}')],
        members=members,
    )
    svc = AttendanceService(repo, members)

    svc.check_in(make_ctx(10, member_id=1), now=at(11))

    record = repo.get_by_id(5)
    assert record.sessions == (Session("08:00:00", "10:00:00", 1), Session("11:00:00"))
    assert record.notes is None
    assert record.check_in_time == time(8, 0)


def test_get_today_summarises_sessions(svc):
    ctx = make_ctx(10, member_id=1)
    assert svc.get_today(ctx, today=DAY).state == SessionState.NO_SESSION

    svc.check_in(ctx, now=at(9))
    svc.check_out(ctx, now=at(11, 30), jobs=5)

    today = svc.get_today(ctx, today=DAY)
    assert today.state == SessionState.CHECKED_OUT
    assert today.hours == 2.5
    assert today.jobs == 5


def test_history_rows(svc):
    ctx = make_ctx(10, member_id=1)
    svc.check_in(ctx, now=at(9))
    svc.check_out(ctx, now=at(10), jobs=1)

    rows = svc.get_my_history(ctx)

    assert rows == [
        {
            "attendance_id": 1,
            "date": "2026-02-02",
            "status": "present",
            "check_in": "09:00:00",
            "check_out": "10:00:00",
            "hours": 1.0,
            "jobs": 1,
        }
    ]


def test_changes_are_published(repo, members):
    feed = ChangeFeed()
    events = []
    svc = AttendanceService(repo, members, feed=feed)

    with feed.subscribe("attendance", events.append):
        svc.check_in(make_ctx(10, member_id=1), now=at(9))
        svc.check_out(make_ctx(10, member_id=1), now=at(10))

    svc.check_in(make_ctx(20, member_id=2), now=at(9))

    assert [(e.action, e.payload["state"]) for e in events] == [("insert", "checked_in"), ("update", "checked_out")]


def test_manual_entry_is_admin_only(svc):
    with pytest.raises(AuthorizationError):
        svc.mark_attendance(make_ctx(10), employee_id=1, work_date=DAY, status=AttendanceStatus.ABSENT)


def test_manual_entry_create_update_delete(svc, repo):
    admin = make_ctx(1, member_id=None, is_admin=True)

    attendance_id = svc.mark_attendance(
        admin, employee_id=2, work_date=DAY, status="late", check_in_time="10:15", check_out_time="18:00", notes="Traffic"
    )
    record = repo.get_by_id(attendance_id)
    assert record.status == AttendanceStatus.LATE
    assert record.check_in_time == time(10, 15)
    assert record_hours(record) == 7.75

    with pytest.raises(ValidationError, match="already marked"):
        svc.mark_attendance(admin, employee_id=2, work_date=DAY, status="present")

    svc.update_attendance(admin, attendance_id, status="half-day", check_in_time="10:15", check_out_time="14:15", notes="")
    record = repo.get_by_id(attendance_id)
    assert record.status == AttendanceStatus.HALF_DAY
    assert record.notes is None
    assert record_hours(record) == 4.0

    svc.delete_attendance(admin, attendance_id)
    assert repo.get_by_id(attendance_id) is None
    with pytest.raises(NotFoundError):
        svc.delete_attendance(admin, attendance_id)


def test_manual_entry_validates_input(svc):
    admin = make_ctx(1, member_id=None, is_admin=True)

    with pytest.raises(ValidationError):
        svc.mark_attendance(admin, employee_id=42, work_date=DAY, status="present")
    with pytest.raises(ValidationError):
        svc.mark_attendance(admin, employee_id=1, work_date=DAY, status="on-holiday")
    with pytest.raises(ValidationError):
        svc.mark_attendance(admin, employee_id=1, work_date=DAY, status="present", check_in_time="9am")


def test_legacy_job_count_survives_check_out_without_jobs(members):
    repo = InMemoryAttendance(
        [make_record(5, 1, DAY, check_in_time=time(8, 30), notes="Jobs Applied: 3")],
        members=members,
    )
    svc = AttendanceService(repo, members)
    assert record_jobs(repo.get_by_id(5)) == 3

    svc.check_out(make_ctx(10, member_id=1), now=at(12))

    assert record_jobs(repo.get_by_id(5)) == 3


def test_legacy_log_with_bad_times_is_rejected_before_writing(members):
    repo = InMemoryAttendance(
        [make_record(5, 1, DAY, notes='{"sessions":[{"in":"9am","out":"10:00:00"}]}')],
        members=members,
    )
    svc = AttendanceService(repo, members)
    ctx = make_ctx(10, member_id=1)

    with pytest.raises(ValidationError, match="invalid times"):
        svc.check_in(ctx, now=at(11))
    with pytest.raises(ValidationError, match="invalid times"):
        svc.check_out(ctx, now=at(11))
    assert repo.writes == 0

    admin = make_ctx(1, member_id=None, is_admin=True)
    svc.update_attendance(admin, 5, status="present", notes='{"sessions":[{"in":"09:00:00","out":"10:00:00"}]}')
    svc.check_in(ctx, now=at(11))

    record = repo.get_by_id(5)
    assert record.sessions == (Session("09:00:00", "10:00:00"), Session("11:00:00"))
    assert record.notes is None


def test_admin_edit_keeps_times_derived_from_sessions(svc, repo):
    ctx = make_ctx(10, member_id=1)
    admin = make_ctx(1, member_id=None, is_admin=True)
    svc.check_in(ctx, now=at(9))
    svc.check_out(ctx, now=at(12))

    svc.update_attendance(admin, 1, status="late", notes="late bus")
    record = repo.get_by_id(1)
    assert record.status == AttendanceStatus.LATE
    assert record.notes == "late bus"
    assert (record.check_in_time, record.check_out_time) == (time(9, 0), time(12, 0))

    svc.check_in(ctx, now=at(13))
    svc.update_attendance(admin, 1, status="present", check_in_time="07:00", check_out_time="18:00")
    record = repo.get_by_id(1)
    assert record.sessions == (Session("09:00:00", "12:00:00"), Session("13:00:00"))
    assert (record.check_in_time, record.check_out_time) == (time(9, 0), None)


def test_admin_edit_of_legacy_json_record_moves_log_into_sessions(svc, repo):
    repo.by_id[7] = make_record(7, 2, DAY, notes='{"sessions":[{"in":"08:00:00","out":"09:30:00","jobs":2}]}')
    admin = make_ctx(1, member_id=None, is_admin=True)

    svc.update_attendance(admin, 7, status="present", check_in_time="06:00", notes="")

    record = repo.get_by_id(7)
    assert record.sessions == (Session("08:00:00", "09:30:00", 2),)
    assert (record.check_in_time, record.check_out_time) == (time(8, 0), time(9, 30))
    assert record.notes is None
