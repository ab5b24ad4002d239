from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from ..common.datetime_utils import parse_time_of_day
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One unit of work: commit when the block exits cleanly, roll back otherwise.

    Multi-statement writes (a record plus its session rows) go through a single
    block so they land together.
    """

    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        logger.warning("rolling back transaction", exc_info=True)
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def placeholders(values: Sequence[Any]) -> str:
    """``%s,%s,...`` for an ``IN (...)`` clause over ``values``."""

    if not values:
        raise ValueError("IN clause needs at least one value")
    return ",".join(["%s"] * len(values))


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME column value as ``datetime.time``.

    The pure-Python connector hands TIME back as ``timedelta``; some drivers
    return strings or ``time`` directly.
    """

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        return (datetime.min + timedelta(seconds=int(value.total_seconds()) % 86400)).time()
    if isinstance(value, str):
        return parse_time_of_day(value)
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
