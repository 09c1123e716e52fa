"""
auth/audit.py -- Bounded in-memory security event log.

SecurityEventLog is an append-only, insertion-ordered store capped at
`capacity` events (default 1000). When an append pushes the log past
capacity, the oldest events are dropped first. collections.deque(maxlen=...)
performs that eviction as part of append, and the append runs under a lock,
so concurrent writers can never observe or leave more than `capacity` events.

query() returns a new list, newest first. Events that share a timestamp come
back most-recently-inserted first: the snapshot is reversed before a stable
sort on timestamp.

Optional persistence hook: pass `sink` (any callable taking a SecurityEvent,
e.g. SecurityEventStore.append) to mirror every recorded event to durable
storage. The in-memory log stays authoritative. A failing sink is logged and
never breaks record(); durability is not guaranteed.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone

from auth.models import SecurityEvent, SecurityEventFilter, SecurityEventInput

logger = logging.getLogger("authguard.audit")

DEFAULT_CAPACITY = 1000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SecurityEventLog:
    """Process-local audit trail of login and password events.

    Usage:
        log = SecurityEventLog()
        log.record(SecurityEventInput(type=SecurityEventType.login_failure,
                                      identifier="user@example.com", success=False))
        recent_failures = log.query(SecurityEventFilter(type=SecurityEventType.login_failure))
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = _utc_now,
        sink: Callable[[SecurityEvent], None] | None = None,
        echo: bool = False,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be a positive integer")
        self.capacity = capacity
        self._clock = clock
        self._sink = sink
        self._echo = echo
        self._events: deque[SecurityEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def record(self, event: SecurityEventInput) -> SecurityEvent:
        """Timestamp and append an event; returns the stored record."""
        with self._lock:
            stored = SecurityEvent.stamp(event, self._clock())
            self._events.append(stored)

        if self._echo:
            logger.info(
                "Security event: type=%s identifier=%s success=%s reason=%s",
                stored.type.value,
                stored.identifier,
                stored.success,
                stored.reason,
            )

        if self._sink is not None:
            try:
                self._sink(stored)
            except Exception:
                logger.exception("Audit sink failed for %s event", stored.type.value)
        return stored

    def query(self, filters: SecurityEventFilter | None = None) -> list[SecurityEvent]:
        """Return matching events, newest first. All set filter fields must match."""
        with self._lock:
            snapshot = list(self._events)
        snapshot.reverse()
        if filters is not None:
            snapshot = [e for e in snapshot if filters.matches(e)]
        return sorted(snapshot, key=lambda e: e.timestamp, reverse=True)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
