from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from src.staffing_ops.staffing_ops.attendance.model import AttendanceRecord, AttendanceReportRow, Session
from src.staffing_ops.staffing_ops.core.enums import AttendanceStatus, RequestStatus, Role
from src.staffing_ops.staffing_ops.leaves.model import LeaveRequest, LeaveRow
from src.staffing_ops.staffing_ops.members.context import AuthContext
from src.staffing_ops.staffing_ops.members.model import TeamMember, User


class InMemoryUsers:
    def __init__(self, users: Sequence[User] = ()):
        self.by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email == email), None)


class InMemoryMembers:
    def __init__(self, members: Sequence[TeamMember] = ()):
        self.by_id = {m.member_id: m for m in members}
        self._id = max(self.by_id, default=0)

    def get_by_id(self, member_id: int) -> Optional[TeamMember]:
        return self.by_id.get(member_id)

    def get_by_auth_user(self, user_id: int) -> Optional[TeamMember]:
        return next((m for m in self.by_id.values() if m.auth_user_id == user_id), None)

    def get_by_email(self, email: str) -> Optional[TeamMember]:
        return next((m for m in self.by_id.values() if m.email == email), None)

    def list_all(self):
        return sorted(self.by_id.values(), key=lambda m: (m.full_name, m.member_id))

    def create_member(self, *, full_name, email, role_title, auth_user_id=None, is_approved=False) -> int:
        self._id += 1
        self.by_id[self._id] = TeamMember(
            member_id=self._id,
            full_name=full_name,
            email=email,
            role_title=role_title,
            auth_user_id=auth_user_id,
            is_approved=is_approved,
        )
        return self._id

    def set_approved(self, member_id: int, *, is_approved: bool) -> bool:
        member = self.by_id.get(member_id)
        if not member:
            return False
        self.by_id[member_id] = replace(member, is_approved=is_approved)
        return True

    def delete_by_id(self, member_id: int) -> bool:
        return self.by_id.pop(member_id, None) is not None


class InMemoryAttendance:
    def __init__(self, records: Sequence[AttendanceRecord] = (), members: Optional[InMemoryMembers] = None):
        self.by_id = {r.attendance_id: r for r in records}
        self._id = max(self.by_id, default=0)
        self._members = members
        self.writes = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.by_id.get(attendance_id)

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self.by_id.values() if r.employee_id == employee_id and r.work_date == work_date),
            None,
        )

    def get_recent_for_employee(self, employee_id: int, limit: int):
        items = [r for r in self.by_id.values() if r.employee_id == employee_id]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]

    def create_record(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        check_in_time: Optional[time],
        check_out_time: Optional[time],
        notes: Optional[str] = None,
        sessions: Sequence[Session] = (),
    ) -> int:
        self._id += 1
        self.writes += 1
        self.by_id[self._id] = AttendanceRecord(
            attendance_id=self._id,
            employee_id=employee_id,
            work_date=work_date,
            status=status,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            notes=notes,
            sessions=tuple(sessions),
        )
        return self._id

    def update_record(self, *, attendance_id, status, check_in_time, check_out_time, notes, sessions) -> bool:
        record = self.by_id.get(attendance_id)
        if not record:
            return False
        self.writes += 1
        self.by_id[attendance_id] = replace(
            record,
            status=status,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            notes=notes,
            sessions=tuple(sessions),
        )
        return True

    def delete_record(self, attendance_id: int) -> bool:
        return self.by_id.pop(attendance_id, None) is not None

    def list_between(self, *, start_date: date, end_date: date, employee_id: Optional[int] = None):
        rows = []
        for r in sorted(self.by_id.values(), key=lambda r: (r.work_date, r.employee_id)):
            if not (start_date <= r.work_date <= end_date):
                continue
            if employee_id is not None and r.employee_id != employee_id:
                continue
            member = self._members.get_by_id(r.employee_id) if self._members else None
            name = member.full_name if member else f"#{r.employee_id}"
            rows.append(AttendanceReportRow(record=r, employee_name=name))
        return rows

    def list_with_legacy_notes(self):
        return [
            r
            for r in self.by_id.values()
            if not r.sessions and (r.notes is not None or r.check_in_time is not None)
        ]


class InMemoryLeaves:
    CREATED = datetime(2026, 1, 5, 8, 0)

    def __init__(self, members: Optional[InMemoryMembers] = None):
        self.by_id: dict[int, LeaveRequest] = {}
        self._id = 0
        self._members = members

    def create_leave(self, *, employee_id, leave_type, start_date, end_date, reason) -> int:
        self._id += 1
        self.by_id[self._id] = LeaveRequest(
            request_id=self._id,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=self.CREATED + timedelta(minutes=self._id),
        )
        return self._id

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        return self.by_id.get(request_id)

    def list_leave_requests(self, *, status=None, employee_id=None, limit: int = 200):
        rows = []
        for r in sorted(self.by_id.values(), key=lambda r: r.created_at, reverse=True):
            if status is not None and r.status != status:
                continue
            if employee_id is not None and r.employee_id != employee_id:
                continue
            member = self._members.get_by_id(r.employee_id) if self._members else None
            rows.append(LeaveRow(request=r, employee_name=member.full_name if member else f"#{r.employee_id}"))
        return rows[:limit]

    def decide_leave(self, *, request_id, status, decided_by) -> bool:
        leave = self.by_id.get(request_id)
        if leave is None or leave.status != RequestStatus.PENDING:
            return False
        self.by_id[request_id] = replace(leave, status=status, decided_by=decided_by, decided_at=self.CREATED)
        return True

    def delete_leave(self, request_id: int) -> bool:
        return self.by_id.pop(request_id, None) is not None

def make_user(
    user_id: int = 1,
    *,
    email: str = "a@example.com",
    role: Role = Role.EMPLOYEE,
    password_hash: str = "x",
    is_active: bool = True,
) -> User:
    return User(
        user_id=user_id,
        email=email,
        full_name=f"User {user_id}",
        password_hash=password_hash,
        role=role,
        is_active=is_active,
    )


def make_member(
    member_id: int = 1,
    *,
    name: str = "Ana",
    auth_user_id: Optional[int] = None,
    is_approved: bool = True,
    email: Optional[str] = None,
) -> TeamMember:
    return TeamMember(
        member_id=member_id,
        full_name=name,
        email=email,
        role_title="Recruiter",
        auth_user_id=auth_user_id,
        is_approved=is_approved,
    )


def make_ctx(user_id: int = 1, *, member_id: Optional[int] = 1, is_admin: bool = False, is_approved: bool = True) -> AuthContext:
    return AuthContext(
        user_id=user_id,
        email=f"user{user_id}@example.com",
        full_name=f"User {user_id}",
        is_admin=is_admin,
        is_approved=is_approved,
        member_id=member_id,
    )


def make_record(
    attendance_id: int,
    employee_id: int,
    work_date: date,
    *,
    status: AttendanceStatus = AttendanceStatus.PRESENT,
    check_in_time: Optional[time] = None,
    check_out_time: Optional[time] = None,
    notes: Optional[str] = None,
    sessions: Sequence[Session] = (),
) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=attendance_id,
        employee_id=employee_id,
        work_date=work_date,
        status=status,
        check_in_time=check_in_time,
        check_out_time=check_out_time,
        notes=notes,
        sessions=tuple(sessions),
    )
