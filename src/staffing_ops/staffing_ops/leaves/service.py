from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..common.change_feed import ChangeEvent, ChangeFeed
from ..core.enums import LeaveType, RequestStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..members.context import AuthContext
from ..members.repository import MemberRepository
from ..members.service import find_linked_member
from .model import LeaveRequest, LeaveRow
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


def _as_leave_type(value) -> LeaveType:
    try:
        return LeaveType((value or LeaveType.VACATION.value).lower())
    except (AttributeError, ValueError):
        raise ValidationError(f"Unknown leave type: {value!r}") from None


def _as_status_filter(value) -> Optional[RequestStatus]:
    if value is None or value == "" or value == "all":
        return None
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError("Status must be one of all, pending, approved, rejected") from None


class LeaveService:
    """Use case: request time off, and let admins decide on it."""

    def __init__(self, leaves: LeaveRepository, members: MemberRepository, *, feed: Optional[ChangeFeed] = None):
        self._leaves = leaves
        self._members = members
        self._feed = feed

    def _publish(self, action: str, request_id: int, **payload) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent("leave_requests", action, request_id, payload))

    def _target_employee(self, ctx: AuthContext, employee_id: Optional[int]) -> int:
        own = find_linked_member(self._members, ctx)
        if employee_id is None:
            if own is None:
                raise ValidationError("Please select an employee")
            return own.member_id
        if not ctx.is_admin and (own is None or own.member_id != employee_id):
            raise AuthorizationError("Only admins can request leave for someone else")
        if self._members.get_by_id(employee_id) is None:
            raise ValidationError("Please select an employee")
        return int(employee_id)

    def create_leave(
        self,
        ctx: AuthContext,
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        leave_type=LeaveType.VACATION,
        reason: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> int:
        if start_date is None or end_date is None:
            raise ValidationError("Please select start and end dates")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")

        target = self._target_employee(ctx, employee_id)
        kind = _as_leave_type(leave_type)
        request_id = self._leaves.create_leave(
            employee_id=target,
            leave_type=kind,
            start_date=start_date,
            end_date=end_date,
            reason=(reason or "").strip() or None,
        )
        logger.info("leave %s (%s, %s..%s) requested for member %s", request_id, kind.value, start_date, end_date, target)
        self._publish("insert", request_id, employee_id=target, status=RequestStatus.PENDING.value)
        return request_id

    def list_leaves(self, ctx: AuthContext, *, status=None) -> list[dict]:
        """Admins see every request; everyone else sees their own."""

        wanted = _as_status_filter(status)
        if ctx.is_admin:
            rows = self._leaves.list_leave_requests(status=wanted)
        else:
            own = find_linked_member(self._members, ctx)
            if own is None:
                return []
            rows = self._leaves.list_leave_requests(status=wanted, employee_id=own.member_id)
        return [self._to_ui(r) for r in rows]

    def _get(self, request_id: int) -> LeaveRequest:
        leave = self._leaves.get_leave(request_id)
        if leave is None:
            raise NotFoundError("Leave request not found")
        return leave

    def _decide(self, ctx: AuthContext, request_id: int, status: RequestStatus) -> None:
        if not ctx.is_admin:
            raise AuthorizationError("Only admins can decide on leave requests")
        leave = self._get(request_id)
        if leave.status != RequestStatus.PENDING:
            raise ValidationError("This leave request has already been decided")
        if not self._leaves.decide_leave(request_id=request_id, status=status, decided_by=ctx.user_id):
            raise ValidationError("This leave request has already been decided")
        logger.info("leave %s %s by user %s", request_id, status.value, ctx.user_id)
        self._publish("update", request_id, employee_id=leave.employee_id, status=status.value)

    def approve_leave(self, ctx: AuthContext, request_id: int) -> None:
        self._decide(ctx, request_id, RequestStatus.APPROVED)

    def reject_leave(self, ctx: AuthContext, request_id: int) -> None:
        self._decide(ctx, request_id, RequestStatus.REJECTED)

    def delete_leave(self, ctx: AuthContext, request_id: int) -> None:
        if not ctx.is_admin:
            raise AuthorizationError("Only admins can delete leave requests")
        if not self._leaves.delete_leave(request_id):
            raise NotFoundError("Leave request not found")
        logger.info("leave %s deleted by user %s", request_id, ctx.user_id)
        self._publish("delete", request_id)

    @staticmethod
    def _to_ui(row: LeaveRow) -> dict:
        r = row.request
        return {
            "request_id": r.request_id,
            "employee_id": r.employee_id,
            "name": row.employee_name,
            "leave_type": r.leave_type.value,
            "start_date": r.start_date.isoformat(),
            "end_date": r.end_date.isoformat(),
            "days": r.days,
            "reason": r.reason or "",
            "status": r.status.value,
            "created_at": r.created_at.strftime("%Y-%m-%d %H:%M"),
        }
