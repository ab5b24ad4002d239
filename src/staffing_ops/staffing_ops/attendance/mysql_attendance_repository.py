from __future__ import annotations

from datetime import date, time
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..common.datetime_utils import format_time_of_day
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time, placeholders
from .model import AttendanceRecord, AttendanceReportRow, Session
from .repository import AttendanceRepository

_RECORD_COLUMNS = "a.attendance_id, a.employee_id, a.work_date, a.status, a.check_in_time, a.check_out_time, a.notes"


def _time_str(value) -> Optional[str]:
    t = normalize_mysql_time(value)
    return format_time_of_day(t) if t is not None else None


def _load_sessions(cur, attendance_ids: Iterable[int]) -> Dict[int, Tuple[Session, ...]]:
    ids = [int(i) for i in attendance_ids]
    if not ids:
        return {}

    cur.execute(
        f"""
        SELECT attendance_id, check_in, check_out, jobs
        FROM attendance_sessions
        WHERE attendance_id IN ({placeholders(ids)})
        ORDER BY attendance_id, position
        """,
        tuple(ids),
    )

    grouped: Dict[int, List[Session]] = {}
    for r in fetchall(cur):
        grouped.setdefault(int(r["attendance_id"]), []).append(
            Session(
                check_in=_time_str(r["check_in"]),
                check_out=_time_str(r.get("check_out")),
                jobs=int(r.get("jobs") or 0),
            )
        )
    return {k: tuple(v) for k, v in grouped.items()}


def _write_sessions(cur, attendance_id: int, sessions: Sequence[Session]) -> None:
    cur.execute("DELETE FROM attendance_sessions WHERE attendance_id=%s", (attendance_id,))
    for position, s in enumerate(sessions):
        cur.execute(
            """
            INSERT INTO attendance_sessions(attendance_id, position, check_in, check_out, jobs)
            VALUES(%s,%s,%s,%s,%s)
            """,
            (attendance_id, position, s.check_in, s.check_out, int(s.jobs or 0)),
        )


def _to_record(r: dict, sessions: Tuple[Session, ...]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=normalize_mysql_time(r.get("check_in_time")),
        check_out_time=normalize_mysql_time(r.get("check_out_time")),
        notes=r.get("notes"),
        sessions=sessions,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, cur, where: str, params: tuple, *, suffix: str = "") -> List[AttendanceRecord]:
        cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance a WHERE {where} {suffix}", params)
        rows = fetchall(cur)
        sessions = _load_sessions(cur, (r["attendance_id"] for r in rows))
        return [_to_record(r, sessions.get(int(r["attendance_id"]), ())) for r in rows]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._select(cur, "a.attendance_id=%s", (int(attendance_id),))
            return found[0] if found else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._select(cur, "a.employee_id=%s AND a.work_date=%s", (int(employee_id), work_date))
            return found[0] if found else None

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select(
                cur,
                "a.employee_id=%s",
                (int(employee_id), int(limit)),
                suffix="ORDER BY a.work_date DESC LIMIT %s",
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(employee_id, work_date, status, check_in_time, check_out_time, notes)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(employee_id), work_date, status.value, check_in_time, check_out_time, notes),
            )
            attendance_id = int(cur.lastrowid)
            _write_sessions(cur, attendance_id, sessions)
            return attendance_id

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET status=%s, check_in_time=%s, check_out_time=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (status.value, check_in_time, check_out_time, notes, int(attendance_id)),
            )
            cur.execute("SELECT 1 AS found FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            if not fetchone(cur):
                return False
            _write_sessions(cur, int(attendance_id), sessions)
            return True

    def delete_record(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_between(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        clauses = ["a.work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]
        if employee_id is not None:
            clauses.append("a.employee_id=%s")
            params.append(int(employee_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}, m.full_name
                FROM attendance a
                JOIN team_members m ON m.member_id = a.employee_id
                WHERE {where}
                ORDER BY a.work_date ASC, a.employee_id ASC
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            sessions = _load_sessions(cur, (r["attendance_id"] for r in rows))
            return [
                AttendanceReportRow(
                    record=_to_record(r, sessions.get(int(r["attendance_id"]), ())),
                    employee_name=r["full_name"],
                )
                for r in rows
            ]

    def list_with_legacy_notes(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select(
                cur,
                """
                NOT EXISTS (SELECT 1 FROM attendance_sessions s WHERE s.attendance_id = a.attendance_id)
                AND (a.notes IS NOT NULL OR a.check_in_time IS NOT NULL)
                """,
                (),
                suffix="ORDER BY a.work_date ASC, a.attendance_id ASC",
            )
