"""
tests/conftest.py -- Shared test fixtures for AuthGuard.

This module provides:
  - FakeClock / fake_clock: a settable time source for the audit log
  - t0: a fixed, timezone-aware reference instant for rate-limiter tests
  - api_client: TestClient running the real lifespan, with a CSRF token
    already issued and echoed in the X-CSRF-Token header

Environment variables must be set before any api/ or core/ import because
get_settings() is cached on first call and api/limiter.py reads the per-IP
limit at import time:
  LOGIN_RATE_LIMIT  raised so per-identifier lockout tests are not cut short
                    by the per-IP throttle
  AUDIT_API_KEY     enables GET /api/v1/security/events
  ALLOWED_HOSTS     admits TestClient's "testserver" host
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

# CRITICAL: set before any api/core import -- get_settings() is lru_cached.
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("AUDIT_API_KEY", "test-audit-key-0123456789abcdef0123")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from api.middleware import CSRF_HEADER_NAME

AUDIT_API_KEY = os.environ["AUDIT_API_KEY"]


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def t0() -> datetime:
    return datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_clock(t0: datetime) -> FakeClock:
    return FakeClock(t0)


@pytest.fixture
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient with fresh security state and a valid CSRF pair.

    Function-scoped: each test gets a new lifespan, which builds a new
    LoginRateLimiter and SecurityEventLog, so lockouts and audit events never
    leak between tests. The shared slowapi counters are reset as well.
    """
    limiter.reset()
    with TestClient(app, raise_server_exceptions=True) as client:
        token = client.get("/api/v1/security/csrf-token").json()["csrf_token"]
        client.headers[CSRF_HEADER_NAME] = token
        yield client
