from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceReportRow, Session


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_record(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        check_in_time: Optional[time],
        check_out_time: Optional[time],
        notes: Optional[str],
        sessions: Sequence[Session],
    ) -> bool:
        """Write back the whole record, replacing its session rows."""

        raise NotImplementedError

    def delete_record(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_between(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError

    def list_with_legacy_notes(self) -> Sequence[AttendanceRecord]:
        """Records with no session rows but a notes value or legacy check-in time."""

        raise NotImplementedError
