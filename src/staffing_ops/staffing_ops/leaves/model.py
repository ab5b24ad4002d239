from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveType, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str]
    status: RequestStatus
    created_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None

    @property
    def days(self) -> int:
        """Calendar days covered, both ends included."""
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class LeaveRow:
    """A leave request joined with the member's display name."""

    request: LeaveRequest
    employee_name: str
