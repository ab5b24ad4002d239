from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """System role of a login account."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Status stored on a daily attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"


class SessionState(str, Enum):
    """Where an employee stands within today's session log."""

    NO_SESSION = "no_session"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


class Metric(str, Enum):
    HOURS = "hours"
    JOBS = "jobs"


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    OTHER = "other"
