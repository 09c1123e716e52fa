"""Unit tests for SecurityEventStore in auth/audit_store.py.

Uses a file-backed SQLite DB under pytest's tmp_path so every test starts
from an empty schema.
"""

from auth.audit import SecurityEventLog
from auth.audit_store import SecurityEventStore
from auth.models import SecurityEventInput, SecurityEventType


def _store(tmp_path) -> SecurityEventStore:
    return SecurityEventStore(f"sqlite:///{tmp_path / 'audit.db'}")


def test_append_and_recent_round_trip(tmp_path, fake_clock, t0):
    store = _store(tmp_path)
    log = SecurityEventLog(clock=fake_clock, sink=store.append)
    stored = log.record(
        SecurityEventInput(
            type=SecurityEventType.login_failure,
            identifier="user@example.com",
            success=False,
            user_id="u-42",
            ip="203.0.113.7",
            user_agent="Mozilla/5.0 (X11; Linux x86_64)",
            reason="Invalid password",
        )
    )
    try:
        [loaded] = store.recent()
        assert loaded == stored
        assert loaded.timestamp == t0
    finally:
        store.close()


def test_recent_is_newest_first_and_limited(tmp_path, fake_clock):
    store = _store(tmp_path)
    log = SecurityEventLog(clock=fake_clock, sink=store.append)
    for i in range(5):
        log.record(SecurityEventInput(type=SecurityEventType.login_attempt, identifier=f"u{i}", success=True))
        fake_clock.advance(seconds=1)
    try:
        assert [e.identifier for e in store.recent(limit=3)] == ["u4", "u3", "u2"]
        assert store.count() == 5
    finally:
        store.close()


def test_store_outlives_the_in_memory_log(tmp_path, fake_clock):
    store = _store(tmp_path)
    log = SecurityEventLog(capacity=2, clock=fake_clock, sink=store.append)
    for i in range(4):
        log.record(SecurityEventInput(type=SecurityEventType.login_attempt, identifier=f"u{i}", success=True))
    try:
        assert len(log) == 2
        assert store.count() == 4
    finally:
        store.close()
