"""
Bounded diagnostic log of inbound webhooks and outbound API calls.

Entries are stored most-recent-first under the `logs` key; once capacity is
exceeded the oldest entries are evicted. Entries are never modified. Writes may come from the event loop and from
threadpool handlers at once; a lock serializes the read-modify-write.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, List

from app.core.redaction import redact, redact_url
from app.schemas.event_log import LogDirection, LogEntry
from app.stores.base import KeyValueStore

LOGS_KEY = "logs"
DEFAULT_CAPACITY = 50

logger = logging.getLogger(__name__)


class EventLogService:
    """Append / list operations over the ring buffer."""

    def __init__(self, store: KeyValueStore, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._store = store
        self.capacity = capacity
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> LogEntry:
        """Insert at the front; drop whatever falls past capacity."""
        with self._lock:
            current = self._store.get(LOGS_KEY) or []
            current.insert(0, entry.model_dump(mode="json"))
            self._store.put(LOGS_KEY, current[: self.capacity])
        level = logging.ERROR if entry.status >= 400 or entry.status == 0 else logging.INFO
        logger.log(
            level,
            "[%s] %s %s -> %s (%s)",
            entry.source,
            entry.method,
            entry.path,
            entry.status,
            entry.outcome,
        )
        return entry

    def record(
        self,
        *,
        direction: LogDirection,
        method: str,
        path: str,
        status: int,
        outcome: str,
        source: str = "system",
        payload: Any = None,
        secrets: Iterable[str] = (),
    ) -> LogEntry:
        """Build a redacted entry and append it."""
        entry = LogEntry(
            direction=direction,
            method=method,
            path=redact_url(path),
            status=status,
            outcome=outcome,
            source=source,
            payload=redact(payload if payload is not None else {}, secrets),
        )
        return self.append(entry)

    def list(self) -> List[LogEntry]:
        """Current contents, most recent first."""
        return [LogEntry.model_validate(raw) for raw in self._store.get(LOGS_KEY) or []]

    def clear(self) -> None:
        with self._lock:
            self._store.put(LOGS_KEY, [])
