"""Move legacy session logs out of attendance notes into attendance_sessions.

Usage: python scripts/migrate_attendance_notes.py [--dry-run]
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.staffing_ops.staffing_ops.attendance.migration import migrate_legacy_records
from src.staffing_ops.staffing_ops.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.staffing_ops.staffing_ops.database.connection import DBConfig, DatabaseConnection

logger = logging.getLogger("migrate_attendance_notes")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="report what would change without writing")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(settings.DB_CONFIG))
    summary = migrate_legacy_records(MySQLAttendanceRepository(conn), dry_run=args.dry_run)

    logger.info(
        "scanned=%d migrated=%d skipped=%d invalid=%d%s",
        summary.scanned,
        summary.migrated,
        summary.skipped,
        summary.invalid,
        " (dry run)" if args.dry_run else "",
    )
    return 1 if summary.invalid else 0


if __name__ == "__main__":
    sys.exit(main())
