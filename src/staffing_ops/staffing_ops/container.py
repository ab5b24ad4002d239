from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.change_feed import ChangeFeed
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .members.mysql_member_repository import MySQLMemberRepository, MySQLUserRepository
from .members.repository import MemberRepository, UserRepository
from .members.service import AuthService, MemberService
from .reports.service import ReportService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    members_repo: MemberRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository

    feed: ChangeFeed
    auth_service: AuthService
    member_service: MemberService
    attendance_service: AttendanceService
    report_service: ReportService
    leave_service: LeaveService

    conn: Optional[DatabaseConnection] = None


def build_services(
    *,
    users_repo: UserRepository,
    members_repo: MemberRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    feed = ChangeFeed()
    return Container(
        users_repo=users_repo,
        members_repo=members_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        feed=feed,
        auth_service=AuthService(users_repo, members_repo),
        member_service=MemberService(members_repo, feed=feed),
        attendance_service=AttendanceService(attendance_repo, members_repo, feed=feed),
        report_service=ReportService(attendance_repo),
        leave_service=LeaveService(leaves_repo, members_repo, feed=feed),
        conn=conn,
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return build_services(
        users_repo=MySQLUserRepository(conn),
        members_repo=MySQLMemberRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        conn=conn,
    )
