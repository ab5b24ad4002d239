from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from .model import LeaveRequest, LeaveRow


class LeaveRepository(Protocol):
    def create_leave(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str],
    ) -> int:
        """Insert a request in ``pending`` status and return its id."""

        raise NotImplementedError

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_leave_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRow]:
        """Newest first."""

        raise NotImplementedError

    def decide_leave(self, *, request_id: int, status: RequestStatus, decided_by: int) -> bool:
        """Set the decision; only a ``pending`` request can change."""

        raise NotImplementedError

    def delete_leave(self, request_id: int) -> bool:
        raise NotImplementedError
