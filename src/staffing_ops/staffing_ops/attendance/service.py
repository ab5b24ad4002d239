from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional, Sequence

from ..common.change_feed import ChangeEvent, ChangeFeed
from ..common.datetime_utils import format_time_of_day, now_local, parse_time_of_day
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, SessionState
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..members.context import AuthContext
from ..members.model import TeamMember
from ..members.repository import MemberRepository
from ..members.service import find_linked_member
from . import tracker
from .aggregator import record_hours, record_jobs, total_hours_for_day, total_jobs_for_day
from .model import AttendanceRecord, Session
from .repository import AttendanceRepository
from .sessions import decode, has_valid_times, is_session_log, migrate_legacy_notes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TodayStatus:
    work_date: date
    state: SessionState
    sessions: Sequence[Session]
    hours: float
    jobs: int
    record: Optional[AttendanceRecord] = None


def _optional_time(value) -> Optional[time]:
    if value is None or value == "":
        return None
    try:
        return parse_time_of_day(value)
    except ValueError:
        raise ValidationError(f"Invalid time: {value!r}") from None


def _as_time(value: Optional[str]) -> Optional[time]:
    return parse_time_of_day(value) if value else None


def _as_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown attendance status: {value!r}") from None


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        *,
        feed: Optional[ChangeFeed] = None,
    ):
        self._attendance = attendance
        self._members = members
        self._feed = feed

    def _publish(self, action: str, attendance_id: int, **payload) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent("attendance", action, attendance_id, payload))

    def _linked_member(self, ctx: AuthContext) -> TeamMember:
        member = find_linked_member(self._members, ctx)
        if member is None:
            raise ValidationError("Your account is not linked to a team member")
        return member

    @staticmethod
    def _current_sessions(record: AttendanceRecord) -> tuple[List[Session], Optional[str]]:
        """Sessions to mutate plus the notes to keep, migrating legacy content.

        A legacy log with times that are not wall-clock times cannot be saved
        as session rows, so it is rejected until an admin corrects the notes.
        """

        if record.sessions:
            return list(record.sessions), record.notes
        migrated = migrate_legacy_notes(record.notes, record.check_in_time, record.check_out_time)
        if not has_valid_times(migrated.sessions):
            logger.warning("attendance %s: legacy session log has invalid times", record.attendance_id)
            raise ValidationError("Today's session log has invalid times, ask an admin to correct it")
        return list(migrated.sessions), migrated.notes

    def _save_sessions(self, record: AttendanceRecord, sessions: Sequence[Session], notes: Optional[str]) -> None:
        ok = self._attendance.update_record(
            attendance_id=record.attendance_id,
            status=record.status,
            check_in_time=_as_time(tracker.first_check_in(sessions)),
            check_out_time=_as_time(tracker.last_check_out(sessions)),
            notes=notes,
            sessions=sessions,
        )
        if not ok:
            raise NotFoundError("Attendance record no longer exists")

    def check_in(self, ctx: AuthContext, *, now: datetime | None = None) -> None:
        now = now or now_local()
        today = now.date()
        at = format_time_of_day(now)
        member = self._linked_member(ctx)

        record = self._attendance.get_for_employee_and_date(member.member_id, today)
        if record is None:
            sessions = tracker.check_in([], at)
            attendance_id = self._attendance.create_record(
                employee_id=member.member_id,
                work_date=today,
                status=AttendanceStatus.PRESENT,
                check_in_time=_as_time(at),
                check_out_time=None,
                sessions=sessions,
            )
            logger.info("member %s checked in at %s (new record %s)", member.member_id, at, attendance_id)
            self._publish("insert", attendance_id, employee_id=member.member_id, state=SessionState.CHECKED_IN.value)
            return

        sessions, notes = self._current_sessions(record)
        try:
            sessions = tracker.check_in(sessions, at)
        except ValidationError:
            logger.info("member %s check-in rejected: session already open", member.member_id)
            raise
        self._save_sessions(record, sessions, notes)
        logger.info("member %s checked in at %s (session %d)", member.member_id, at, len(sessions))
        self._publish("update", record.attendance_id, employee_id=member.member_id, state=SessionState.CHECKED_IN.value)

    def check_out(self, ctx: AuthContext, *, now: datetime | None = None, jobs: int = 0) -> None:
        now = now or now_local()
        today = now.date()
        at = format_time_of_day(now)
        member = self._linked_member(ctx)

        record = self._attendance.get_for_employee_and_date(member.member_id, today)
        if record is None:
            logger.info("member %s check-out rejected: no record for %s", member.member_id, today)
            raise ValidationError("No check-in found for today")

        sessions, notes = self._current_sessions(record)
        try:
            sessions = tracker.check_out(sessions, at, jobs)
        except ValidationError:
            logger.info("member %s check-out rejected: no open session", member.member_id)
            raise
        self._save_sessions(record, sessions, notes)
        logger.info("member %s checked out at %s with %s jobs", member.member_id, at, jobs)
        self._publish("update", record.attendance_id, employee_id=member.member_id, state=SessionState.CHECKED_OUT.value)

    def get_today(self, ctx: AuthContext, *, today: date | None = None) -> TodayStatus:
        today = today or now_local().date()
        member = self._linked_member(ctx)
        record = self._attendance.get_for_employee_and_date(member.member_id, today)
        if record is None:
            return TodayStatus(work_date=today, state=SessionState.NO_SESSION, sessions=(), hours=0.0, jobs=0)

        sessions = record.sessions
        if not sessions:
            sessions = migrate_legacy_notes(record.notes, record.check_in_time, record.check_out_time).sessions
        return TodayStatus(
            work_date=today,
            state=tracker.session_state(sessions),
            sessions=tuple(sessions),
            hours=total_hours_for_day(sessions, record.check_in_time, record.check_out_time),
            jobs=total_jobs_for_day(sessions, record.notes),
            record=record,
        )

    def get_history(self, employee_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        rows = self._attendance.get_recent_for_employee(employee_id, limit)
        return [self._to_ui(r) for r in rows]

    def get_my_history(self, ctx: AuthContext, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        return self.get_history(self._linked_member(ctx).member_id, limit=limit)

    # Manual entry (admin)

    def mark_attendance(
        self,
        ctx: AuthContext,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        check_in_time=None,
        check_out_time=None,
        notes: Optional[str] = None,
    ) -> int:
        if not ctx.is_admin:
            raise AuthorizationError("Only admins can mark attendance")
        if self._members.get_by_id(employee_id) is None:
            raise ValidationError("Please select an employee")
        if self._attendance.get_for_employee_and_date(employee_id, work_date):
            raise ValidationError("Attendance is already marked for this employee on this date")

        attendance_id = self._attendance.create_record(
            employee_id=int(employee_id),
            work_date=work_date,
            status=_as_status(status),
            check_in_time=_optional_time(check_in_time),
            check_out_time=_optional_time(check_out_time),
            notes=(notes or "").strip() or None,
        )
        logger.info("attendance %s marked for member %s on %s by user %s", attendance_id, employee_id, work_date, ctx.user_id)
        self._publish("insert", attendance_id, employee_id=int(employee_id))
        return attendance_id

    def update_attendance(
        self,
        ctx: AuthContext,
        attendance_id: int,
        *,
        status: AttendanceStatus,
        check_in_time=None,
        check_out_time=None,
        notes: Optional[str] = None,
    ) -> None:
        """Manual edit of status, times and notes.

        Records that carry a session log keep it, and their check-in and
        check-out columns stay derived from it; the submitted times only apply
        to records without sessions. On such a record, notes holding a session
        log replace it.
        """

        if not ctx.is_admin:
            raise AuthorizationError("Only admins can edit attendance")
        record = self._attendance.get_by_id(attendance_id)
        if record is None:
            raise NotFoundError("Attendance record not found")

        notes = (notes or "").strip() or None
        sessions: Sequence[Session] = record.sessions
        if not sessions:
            if is_session_log(notes):
                sessions, notes = tuple(decode(notes)), None
            elif is_session_log(record.notes):
                sessions = tuple(decode(record.notes))

        if sessions:
            if not has_valid_times(sessions):
                raise ValidationError("Session log has invalid times")
            check_in = _as_time(tracker.first_check_in(sessions))
            check_out = _as_time(tracker.last_check_out(sessions))
        else:
            check_in = _optional_time(check_in_time)
            check_out = _optional_time(check_out_time)

        self._attendance.update_record(
            attendance_id=record.attendance_id,
            status=_as_status(status),
            check_in_time=check_in,
            check_out_time=check_out,
            notes=notes,
            sessions=sessions,
        )
        logger.info("attendance %s updated by user %s", attendance_id, ctx.user_id)
        self._publish("update", record.attendance_id, employee_id=record.employee_id)

    def delete_attendance(self, ctx: AuthContext, attendance_id: int) -> None:
        if not ctx.is_admin:
            raise AuthorizationError("Only admins can delete attendance")
        if not self._attendance.delete_record(attendance_id):
            raise NotFoundError("Attendance record not found")
        logger.info("attendance %s deleted by user %s", attendance_id, ctx.user_id)
        self._publish("delete", attendance_id)

    def _to_ui(self, r: AttendanceRecord) -> dict:
        return {
            "attendance_id": r.attendance_id,
            "date": r.work_date.isoformat(),
            "status": r.status.value,
            "check_in": format_time_of_day(r.check_in_time) if r.check_in_time else "-",
            "check_out": format_time_of_day(r.check_out_time) if r.check_out_time else "-",
            "hours": round(record_hours(r), 2),
            "jobs": record_jobs(r),
        }
