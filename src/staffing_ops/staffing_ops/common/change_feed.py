from __future__ import annotations

import json
import logging
import queue
from contextlib import ExitStack
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from ..core.constants import CHANGE_STREAM_HEARTBEAT_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """One row-level change on a table (insert/update/delete)."""

    table: str
    action: str
    record_id: int
    payload: Dict[str, Any] = field(default_factory=dict)


Callback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe.

    Use it as a context manager to tie the subscription to the lifetime of the
    view that owns it.
    """

    def __init__(self, feed: "ChangeFeed", table: str, callback: Callback):
        self._feed = feed
        self.table = table
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class ChangeFeed:
    """In-process change notifications keyed by table name."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, table: str, callback: Callback) -> Subscription:
        sub = Subscription(self, table, callback)
        self._subscribers.setdefault(table, []).append(sub)
        logger.debug("subscribed to %s (%d listeners)", table, len(self._subscribers[table]))
        return sub

    def _remove(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.table, [])
        if sub in subs:
            subs.remove(sub)
        if not subs:
            self._subscribers.pop(sub.table, None)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is not None:
            return len(self._subscribers.get(table, []))
        return sum(len(v) for v in self._subscribers.values())

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every subscriber of its table.

        Returns the number of callbacks that completed.
        """

        delivered = 0
        for sub in list(self._subscribers.get(event.table, [])):
            try:
                sub.callback(event)
                delivered += 1
            except Exception:
                logger.exception("change feed callback failed for %s/%s", event.table, event.action)
        return delivered


def format_sse(event: ChangeEvent) -> str:
    data = json.dumps(asdict(event), separators=(",", ":"), default=str)
    return f"event: {event.table}\ndata: {data}\n\n"


def event_stream(
    feed: ChangeFeed,
    tables: Iterable[str],
    *,
    heartbeat: float = CHANGE_STREAM_HEARTBEAT_SECONDS,
) -> Iterator[str]:
    """Server-sent events for changes on ``tables``.

    The subscriptions live exactly as long as the generator: they are taken on
    the first ``next()`` and released when the client disconnects and the
    generator is closed.
    """

    inbox: "queue.Queue[ChangeEvent]" = queue.Queue()
    with ExitStack() as stack:
        for table in tables:
            stack.enter_context(feed.subscribe(table, inbox.put))
        yield ": connected\n\n"
        while True:
            try:
                event = inbox.get(timeout=heartbeat)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(event)
