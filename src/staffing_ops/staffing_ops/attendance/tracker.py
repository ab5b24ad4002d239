from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from ..common.datetime_utils import seconds_of_day
from ..common.validators import require_non_empty, require_non_negative_int
from ..core.enums import SessionState
from ..core.exceptions import ValidationError
from .model import Session


def session_state(sessions: Sequence[Session]) -> SessionState:
    if not sessions:
        return SessionState.NO_SESSION
    if sessions[-1].is_open:
        return SessionState.CHECKED_IN
    return SessionState.CHECKED_OUT


def check_in(sessions: Sequence[Session], at: str) -> List[Session]:
    """Open a new session at ``at``. Only one session may be open at a time."""

    at = require_non_empty(at, "Check-in time")
    if session_state(sessions) == SessionState.CHECKED_IN:
        raise ValidationError("You are already checked in. Please check out first")
    return [*sessions, Session(check_in=at)]


def check_out(sessions: Sequence[Session], at: str, jobs: int = 0) -> List[Session]:
    """Close the open session at ``at``, adding ``jobs`` to what it already logged."""

    at = require_non_empty(at, "Check-out time")
    jobs = require_non_negative_int(jobs, "Jobs applied")
    if session_state(sessions) != SessionState.CHECKED_IN:
        raise ValidationError("No check-in found for today")

    *closed, current = sessions
    return [*closed, replace(current, check_out=at, jobs=current.jobs + jobs)]


def first_check_in(sessions: Sequence[Session]) -> Optional[str]:
    candidates = []
    for s in sessions:
        try:
            candidates.append((seconds_of_day(s.check_in), s.check_in))
        except ValueError:
            continue
    if not candidates:
        return None
    return min(candidates)[1]


def last_check_out(sessions: Sequence[Session]) -> Optional[str]:
    """Check-out time of the most recent session; None while it is open."""

    if not sessions:
        return None
    return sessions[-1].check_out
