from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class Session:
    """One check-in/check-out pair within a day.

    ``check_out`` is None while the session is still open.
    """

    check_in: str
    check_out: Optional[str] = None
    jobs: int = 0

    @property
    def is_open(self) -> bool:
        return self.check_out is None


@dataclass(frozen=True)
class AttendanceRecord:
    """One row per (employee, date).

    ``check_in_time``/``check_out_time`` are the legacy single-span columns, kept
    back-filled from ``sessions`` for older consumers.
    """

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    notes: Optional[str] = None
    sessions: Tuple[Session, ...] = ()


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports/exports (record joined with the member name)."""

    record: AttendanceRecord
    employee_name: str
