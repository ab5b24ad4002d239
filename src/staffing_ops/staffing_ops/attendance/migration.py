from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from ..common.datetime_utils import parse_time_of_day
from .repository import AttendanceRepository
from .sessions import has_valid_times, migrate_legacy_notes
from .tracker import first_check_in, last_check_out

logger = logging.getLogger(__name__)


@dataclass
class MigrationSummary:
    scanned: int = 0
    migrated: int = 0
    skipped: int = 0
    invalid: int = 0
    migrated_ids: List[int] = field(default_factory=list)


def migrate_legacy_records(attendance: AttendanceRepository, *, dry_run: bool = False) -> MigrationSummary:
    """Move session logs out of free-text notes into session rows.

    Records with nothing to convert are left untouched, so a second run is a
    no-op. Records whose logged times are not valid wall-clock times are
    reported and left for manual repair.
    """

    summary = MigrationSummary()
    for record in attendance.list_with_legacy_notes():
        summary.scanned += 1
        migrated = migrate_legacy_notes(record.notes, record.check_in_time, record.check_out_time)

        if not migrated.sessions and migrated.notes == record.notes:
            summary.skipped += 1
            continue

        if not has_valid_times(migrated.sessions):
            summary.invalid += 1
            logger.warning("attendance %s: session log has invalid times, left as is", record.attendance_id)
            continue

        summary.migrated += 1
        summary.migrated_ids.append(record.attendance_id)
        logger.info(
            "attendance %s: %d session(s) from legacy notes%s",
            record.attendance_id,
            len(migrated.sessions),
            " (dry run)" if dry_run else "",
        )
        if dry_run:
            continue

        check_in_time, check_out_time = record.check_in_time, record.check_out_time
        if migrated.sessions:
            first = first_check_in(migrated.sessions)
            last = last_check_out(migrated.sessions)
            check_in_time = parse_time_of_day(first) if first else None
            check_out_time = parse_time_of_day(last) if last else None

        attendance.update_record(
            attendance_id=record.attendance_id,
            status=record.status,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            notes=migrated.notes,
            sessions=migrated.sessions,
        )

    return summary
