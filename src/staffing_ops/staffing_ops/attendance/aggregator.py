from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..common.datetime_utils import TimeOfDay, seconds_of_day
from ..core.enums import Metric
from .model import AttendanceRecord, Session
from .sessions import decode, extract_legacy_jobs_count

Number = Union[int, float]


def hours_for_span(in_time: Optional[TimeOfDay], out_time: Optional[TimeOfDay]) -> float:
    """Same-day wall-clock hours between two times, never below zero.

    There is no overnight rollover: an ``out`` before ``in`` counts as 0.
    """

    if in_time is None or out_time is None:
        return 0.0
    try:
        seconds = seconds_of_day(out_time) - seconds_of_day(in_time)
    except ValueError:
        return 0.0
    if seconds <= 0:
        return 0.0
    return seconds / 3600


def total_hours_for_day(
    sessions: Sequence[Session],
    fallback_check_in: Optional[TimeOfDay],
    fallback_check_out: Optional[TimeOfDay],
) -> float:
    if sessions:
        return sum(hours_for_span(s.check_in, s.check_out) for s in sessions if s.check_out is not None)
    return hours_for_span(fallback_check_in, fallback_check_out)


def total_jobs_for_day(sessions: Sequence[Session], legacy_notes: Optional[str]) -> int:
    if sessions:
        return sum(s.jobs or 0 for s in sessions)
    return extract_legacy_jobs_count(legacy_notes)


def sessions_for_record(record: AttendanceRecord) -> List[Session]:
    """Session list of a record whatever format it was stored in."""

    if record.sessions:
        return list(record.sessions)
    return decode(record.notes)


def record_hours(record: AttendanceRecord) -> float:
    return total_hours_for_day(sessions_for_record(record), record.check_in_time, record.check_out_time)


def record_jobs(record: AttendanceRecord) -> int:
    return total_jobs_for_day(sessions_for_record(record), record.notes)


def aggregate_by_employee(records: Iterable[AttendanceRecord], metric: Metric) -> Dict[int, Number]:
    """Fold per-day totals by employee, keyed in first-seen order."""

    totals: Dict[int, Number] = {}
    for r in records:
        value: Number = record_hours(r) if metric == Metric.HOURS else record_jobs(r)
        totals[r.employee_id] = totals.get(r.employee_id, 0) + value
    return totals


def rank_employees(totals: Dict[int, Number]) -> List[Tuple[int, Number]]:
    """Highest total first; equal totals are ordered by ascending employee id."""

    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))


def top_performer(totals: Dict[int, Number]) -> Optional[Tuple[int, Number]]:
    ranking = rank_employees(totals)
    if not ranking or ranking[0][1] <= 0:
        return None
    return ranking[0]
