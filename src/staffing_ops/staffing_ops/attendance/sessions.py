"""Session log codec.

Older attendance rows keep their check-in/check-out log inside the free-text
``notes`` column, either as JSON::

    {"sessions": [{"in": "09:00:00", "out": "17:30:00", "jobs": 3}, {"in": "18:00:00"}]}

or as plain text carrying ``Jobs Applied: <n>`` markers next to a single
check-in/check-out pair stored on the record itself. New writes keep sessions in
their own table; this module reads both old shapes and converts them.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import time
from typing import Any, List, Optional, Sequence, Tuple

from ..common.datetime_utils import format_time_of_day, parse_time_of_day
from .model import Session

logger = logging.getLogger(__name__)

LEGACY_JOBS_PATTERN = re.compile(r"jobs applied:\s*(\d+)", re.IGNORECASE)


def _as_jobs(value: Any) -> int:
    # bool is an int subclass; true/false are not job counts.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def _session_from_entry(entry: Any) -> Optional[Session]:
    if not isinstance(entry, dict):
        return None
    check_in = entry.get("in")
    if not isinstance(check_in, str) or not check_in:
        return None
    check_out = entry.get("out")
    if not isinstance(check_out, str) or not check_out:
        check_out = None
    return Session(check_in=check_in, check_out=check_out, jobs=_as_jobs(entry.get("jobs")))


def _session_entries(raw: Optional[str]) -> Optional[list]:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        logger.debug("notes are not a session log, using legacy fields")
        return None
    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        return None
    return data["sessions"]


def is_session_log(raw: Optional[str]) -> bool:
    """True for any ``{"sessions": [...]}`` object, including an empty list."""

    return _session_entries(raw) is not None


def decode(raw: Optional[str]) -> List[Session]:
    """Read the structured session log out of a notes value.

    Returns an empty list for anything that is not ``{"sessions": [...]}``;
    callers then fall back to the legacy fields.
    """

    sessions = []
    for entry in _session_entries(raw) or ():
        session = _session_from_entry(entry)
        if session is not None:
            sessions.append(session)
    return sessions


def encode(sessions: Sequence[Session]) -> str:
    entries = []
    for s in sessions:
        entry: dict = {"in": s.check_in}
        if s.check_out is not None:
            entry["out"] = s.check_out
        if s.jobs:
            entry["jobs"] = s.jobs
        entries.append(entry)
    return json.dumps({"sessions": entries}, separators=(",", ":"))


def has_valid_times(sessions: Sequence[Session]) -> bool:
    """True when every logged time is a real ``HH:MM[:SS]`` wall-clock time."""

    try:
        for s in sessions:
            parse_time_of_day(s.check_in)
            if s.check_out is not None:
                parse_time_of_day(s.check_out)
    except ValueError:
        return False
    return True


def extract_legacy_jobs_count(raw: Optional[str]) -> int:
    """Job count from ``Jobs Applied: N`` markers; the last marker wins."""

    if not raw:
        return 0
    matches = LEGACY_JOBS_PATTERN.findall(raw)
    if not matches:
        return 0
    return int(matches[-1])


def strip_legacy_markers(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return LEGACY_JOBS_PATTERN.sub("", raw).strip()


@dataclass(frozen=True)
class LegacyMigration:
    sessions: Tuple[Session, ...]
    notes: Optional[str]


def migrate_legacy_notes(
    notes: Optional[str],
    check_in_time: Optional[time],
    check_out_time: Optional[time],
) -> LegacyMigration:
    """Convert a legacy row into a session list plus clean free text."""

    if is_session_log(notes):
        structured = tuple(decode(notes))
        if structured:
            return LegacyMigration(sessions=structured, notes=None)
        # An empty log still replaces the free text; fall back to the time columns.
        notes = None

    sessions: Tuple[Session, ...] = ()
    if check_in_time is not None:
        sessions = (
            Session(
                check_in=format_time_of_day(check_in_time),
                check_out=format_time_of_day(check_out_time) if check_out_time is not None else None,
                jobs=extract_legacy_jobs_count(notes),
            ),
        )

    clean = strip_legacy_markers(notes)
    return LegacyMigration(sessions=sessions, notes=clean or None)
