from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest, LeaveRow
from .repository import LeaveRepository

_COLUMNS = (
    "r.request_id, r.employee_id, r.leave_type, r.start_date, r.end_date, r.reason, "
    "r.status, r.created_at, r.decided_by, r.decided_at"
)


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r.get("reason"),
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=int(r["decided_by"]) if r.get("decided_by") is not None else None,
        decided_at=r.get("decided_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_leave(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, leave_type, start_date, end_date, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(employee_id), leave_type.value, start_date, end_date, reason, RequestStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests r WHERE r.request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return _to_leave(row) if row else None

    def list_leave_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRow]:
        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("r.employee_id=%s")
            params.append(int(employee_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, m.full_name
                FROM leave_requests r
                JOIN team_members m ON m.member_id = r.employee_id
                WHERE {where}
                ORDER BY r.created_at DESC, r.request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [LeaveRow(request=_to_leave(r), employee_name=r["full_name"]) for r in fetchall(cur)]

    def decide_leave(self, *, request_id: int, status: RequestStatus, decided_by: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=NOW()
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(decided_by), int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def delete_leave(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0
