"""
auth/rate_limiter.py -- Per-identifier login attempt limiter with lockout.

State machine per identifier (typically an email address):

  fresh   -- no record. The next check() creates one and is allowed.
  active  -- attempts < max_attempts inside the current window.
  locked  -- locked_until is in the future. Every check() is denied.

Transitions are evaluated lazily from the `now` passed to check(); there is
no background timer. A naive `now` is taken to be UTC. check() applies the
first matching rule:

  1. no record                       -> create {attempts: 1}, allow
  2. locked_until > now              -> deny, report locked_until
  3. now > window_start + window     -> reset to {attempts: 1}, allow
  4. attempts >= max_attempts        -> lock until now + lockout, deny
  5. otherwise                       -> attempts += 1, allow

clear() deletes the record and is called after a successful login.

Concurrency: check() and clear() run as a single critical section under one
threading.Lock, so two simultaneous attempts can never both observe
attempts < max_attempts and both proceed. The store is process-local.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone

from auth.models import RateLimitDecision, RateLimitPolicy, RateLimitRecord, as_utc

logger = logging.getLogger("authguard.ratelimit")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LoginRateLimiter:
    """Brute-force protection for login attempts.

    Usage:
        limiter = LoginRateLimiter()
        decision = limiter.check("user@example.com")
        if not decision.allowed:
            ...  # surface decision.locked_until to the user
        limiter.clear("user@example.com")  # after a successful login
    """

    def __init__(
        self,
        policy: RateLimitPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.policy = policy or RateLimitPolicy()
        self._clock = clock
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str, now: datetime | None = None) -> RateLimitDecision:
        """Count one attempt for identifier and decide whether it may proceed."""
        now = as_utc(now or self._clock())
        policy = self.policy
        with self._lock:
            record = self._records.get(identifier)

            if record is None:
                self._records[identifier] = RateLimitRecord(attempts=1, window_start=now)
                return RateLimitDecision(allowed=True, remaining_attempts=policy.max_attempts - 1)

            if record.locked_until is not None and record.locked_until > now:
                return RateLimitDecision(allowed=False, remaining_attempts=0, locked_until=record.locked_until)

            if now > record.window_start + policy.window:
                self._records[identifier] = RateLimitRecord(attempts=1, window_start=now)
                return RateLimitDecision(allowed=True, remaining_attempts=policy.max_attempts - 1)

            if record.attempts >= policy.max_attempts:
                record.locked_until = now + policy.lockout
                logger.warning(
                    "Identifier locked: identifier=%s attempts=%d locked_until=%s",
                    identifier,
                    record.attempts,
                    record.locked_until.isoformat(),
                )
                return RateLimitDecision(allowed=False, remaining_attempts=0, locked_until=record.locked_until)

            record.attempts += 1
            return RateLimitDecision(allowed=True, remaining_attempts=policy.max_attempts - record.attempts)

    def clear(self, identifier: str) -> None:
        """Forget every attempt for identifier. Unknown identifiers are a no-op."""
        with self._lock:
            removed = self._records.pop(identifier, None)
        if removed is not None:
            logger.info("Rate limit cleared: identifier=%s", identifier)

    def get_record(self, identifier: str) -> RateLimitRecord | None:
        """Return a copy of the current record, or None if identifier is fresh."""
        with self._lock:
            record = self._records.get(identifier)
            if record is None:
                return None
            return RateLimitRecord(record.attempts, record.window_start, record.locked_until)

    def purge_expired(self, now: datetime | None = None) -> int:
        """Drop records that check() would treat as fresh anyway. Returns the count removed.

        A record is expired once its window has ended and any lockout has
        passed; check() would reset it on the next call. Purging only
        bounds memory and never changes a decision.
        """
        now = as_utc(now or self._clock())
        window = self.policy.window
        with self._lock:
            expired = [
                key
                for key, rec in self._records.items()
                if now > rec.window_start + window and (rec.locked_until is None or rec.locked_until <= now)
            ]
            for key in expired:
                del self._records[key]
        if expired:
            logger.info("Purged %d expired rate-limit records", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
