"""
auth/audit_store.py -- SQLAlchemy Core persistence hook for security events.

Pattern: Repository + Data Mapper.
SecurityEventStore is the repository; _row_to_event is the mapper.

This store is optional. When AUDIT_DB_URL is set, api/main.py passes
SecurityEventStore.append as the `sink` of SecurityEventLog so every recorded
event is mirrored to the database. The in-memory log remains the source for
query(); recent() exists for forensics after a restart. Writes are best
effort and no durability guarantee is made.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import SecurityEvent, SecurityEventType

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_security_events = Table(
    "security_events",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String(30), nullable=False),
    Column("identifier", String(320), nullable=False, index=True),
    Column("user_id", String(64)),
    Column("ip", String(45)),  # fits an IPv6 literal
    Column("user_agent", String(500)),
    Column("timestamp", String(40), nullable=False),  # ISO 8601, UTC
    Column("success", Boolean, nullable=False),
    Column("reason", Text),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so audit reads do not block request-path writes."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _row_to_event(row) -> SecurityEvent:
    return SecurityEvent(
        type=SecurityEventType(row.type),
        identifier=row.identifier,
        timestamp=datetime.fromisoformat(row.timestamp),
        success=bool(row.success),
        user_id=row.user_id,
        ip=row.ip,
        user_agent=row.user_agent,
        reason=row.reason,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SecurityEventStore:
    """Durable mirror of the in-memory security event log.

    Usage:
        store = SecurityEventStore("sqlite:///audit.db")
        log = SecurityEventLog(sink=store.append)
        store.recent(50)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def append(self, security_event: SecurityEvent) -> None:
        """Insert one event. Raises SQLAlchemyError on failure; the log's sink wrapper logs it."""
        with self.engine.connect() as conn:
            conn.execute(
                _security_events.insert().values(
                    type=security_event.type.value,
                    identifier=security_event.identifier,
                    user_id=security_event.user_id,
                    ip=security_event.ip,
                    user_agent=security_event.user_agent,
                    timestamp=security_event.timestamp.isoformat(),
                    success=security_event.success,
                    reason=security_event.reason,
                )
            )
            conn.commit()

    def recent(self, limit: int = 100) -> list[SecurityEvent]:
        """Return up to `limit` stored events, newest first."""
        stmt = select(_security_events).order_by(_security_events.c.id.desc()).limit(limit)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_event(r) for r in rows]

    def count(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_security_events)).scalar() or 0

    def close(self) -> None:
        self.engine.dispose()
