from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from ..attendance.aggregator import (
    aggregate_by_employee,
    rank_employees,
    record_hours,
    record_jobs,
    sessions_for_record,
    top_performer,
)
from ..attendance.model import AttendanceRecord, AttendanceReportRow
from ..attendance.repository import AttendanceRepository
from ..attendance.sessions import encode, migrate_legacy_notes
from ..common.datetime_utils import format_time_of_day, period_range
from ..core.enums import AttendanceStatus, Metric, Period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportData:
    start: date
    end: date
    rows: list[dict]
    stats: dict
    leaderboards: Dict[str, list[dict]]
    top_performers: Dict[str, Optional[dict]]


def attendance_stats(records: Iterable[AttendanceRecord]) -> dict:
    """Status counts and the share of records marked present."""

    counts = {s: 0 for s in AttendanceStatus}
    total = 0
    for r in records:
        counts[r.status] += 1
        total += 1

    present = counts[AttendanceStatus.PRESENT]
    return {
        "present": present,
        "absent": counts[AttendanceStatus.ABSENT],
        "late": counts[AttendanceStatus.LATE],
        "half_day": counts[AttendanceStatus.HALF_DAY],
        "total": total,
        "percentage": round(present / total * 100, 1) if total else 0.0,
    }


def _clean_notes(r: AttendanceRecord) -> str:
    """Free text of a record without any legacy session log or job markers."""

    if r.sessions:
        return r.notes or ""
    return migrate_legacy_notes(r.notes, None, None).notes or ""


def _display(metric: Metric, value) -> float | int:
    return round(value, 2) if metric == Metric.HOURS else int(value)


class ReportService:
    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def _rows(
        self, *, period: Period, today: date, start: Optional[date], end: Optional[date], employee_id: Optional[int]
    ) -> tuple[date, date, Sequence[AttendanceReportRow]]:
        first, last = period_range(period, today, start=start, end=end)
        rows = self._attendance.list_between(start_date=first, end_date=last, employee_id=employee_id)
        logger.debug("report %s %s..%s: %d rows", period.value, first, last, len(rows))
        return first, last, rows

    @staticmethod
    def _ranking(rows: Sequence[AttendanceReportRow], metric: Metric) -> list[dict]:
        names = {r.record.employee_id: r.employee_name for r in rows}
        totals = aggregate_by_employee((r.record for r in rows), metric)
        return [
            {"employee_id": employee_id, "name": names[employee_id], metric.value: _display(metric, value)}
            for employee_id, value in rank_employees(totals)
        ]

    @staticmethod
    def _top(rows: Sequence[AttendanceReportRow], metric: Metric) -> Optional[dict]:
        names = {r.record.employee_id: r.employee_name for r in rows}
        best = top_performer(aggregate_by_employee((r.record for r in rows), metric))
        if best is None:
            return None
        employee_id, value = best
        return {"employee_id": employee_id, "name": names[employee_id], metric.value: _display(metric, value)}

    def leaderboard(
        self,
        *,
        metric: Metric,
        period: Period,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[dict]:
        _, _, rows = self._rows(period=period, today=today, start=start, end=end, employee_id=None)
        return self._ranking(rows, metric)

    def build_report(
        self,
        *,
        period: Period,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
    ) -> ReportData:
        first, last, rows = self._rows(period=period, today=today, start=start, end=end, employee_id=employee_id)

        out_rows: List[dict] = []
        for row in rows:
            r = row.record
            sessions = sessions_for_record(r)
            out_rows.append(
                {
                    "attendance_id": r.attendance_id,
                    "employee_id": r.employee_id,
                    "name": row.employee_name,
                    "work_date": r.work_date.isoformat(),
                    "status": r.status.value,
                    "check_in": format_time_of_day(r.check_in_time) if r.check_in_time else "-",
                    "check_out": format_time_of_day(r.check_out_time) if r.check_out_time else "-",
                    "hours": round(record_hours(r), 2),
                    "jobs": record_jobs(r),
                    "session_count": len(sessions),
                    "sessions": encode(sessions) if sessions else "",
                    "notes": _clean_notes(r),
                }
            )

        return ReportData(
            start=first,
            end=last,
            rows=out_rows,
            stats=attendance_stats(row.record for row in rows),
            leaderboards={m.value: self._ranking(rows, m) for m in Metric},
            top_performers={m.value: self._top(rows, m) for m in Metric},
        )
