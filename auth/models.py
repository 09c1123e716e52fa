"""
auth/models.py -- Domain dataclasses for the authentication security core.

Pattern: Data class (pure data container, near-zero logic). Policies,
results, and audit events own domain shape; the engines in
password_policy.py, rate_limiter.py and audit.py do the work.

Policy dataclasses are frozen: they are built once at startup (from Settings
or directly in tests) and never mutated. RateLimitRecord is the only mutable
type and is owned exclusively by LoginRateLimiter.

Layer rule: no imports from api/. Import from core/ is allowed for the
from_settings() constructors only.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.config import Settings


def as_utc(value: datetime) -> datetime:
    """Return value as an aware datetime. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PasswordPolicyConfig:
    """Thresholds for the password policy engine."""

    min_length: int = 8
    max_length: int = 128
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_digit: bool = True
    require_special: bool = True
    max_consecutive_chars: int = 3
    min_unique_chars: int = 4

    @classmethod
    def from_settings(cls, settings: Settings) -> PasswordPolicyConfig:
        return cls(
            min_length=settings.password_min_length,
            max_length=settings.password_max_length,
            max_consecutive_chars=settings.password_max_consecutive_chars,
            min_unique_chars=settings.password_min_unique_chars,
        )


@dataclass(frozen=True)
class PasswordHints:
    """Identity fragments a password must not contain.

    Empty or missing fields are ignored by the evaluator.
    """

    first_name: str | None = None
    last_name: str | None = None
    email_local_part: str | None = None

    @classmethod
    def from_identity(
        cls,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
    ) -> PasswordHints:
        """Build hints from a full email address (only the local part is kept)."""
        local_part = email.split("@", 1)[0] if email else None
        return cls(first_name=first_name, last_name=last_name, email_local_part=local_part)

    def values(self) -> list[str]:
        """Return the non-empty hints, lowercased, in declaration order."""
        raw = (self.first_name, self.last_name, self.email_local_part)
        return [h.lower() for h in raw if h]


@dataclass
class PasswordEvaluation:
    """Result of evaluating one candidate password.

    score is clamped to [0, 100]. errors and suggestions are human-readable
    and ordered by rule; callers should not rely on positions.
    """

    score: int
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateLimitPolicy:
    """Thresholds for the login rate limiter.

    max_daily_attempts is carried for configuration parity only. No
    limiter transition consults it.
    """

    max_attempts: int = 5
    window_minutes: int = 15
    lockout_minutes: int = 30
    max_daily_attempts: int = 50

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)

    @property
    def lockout(self) -> timedelta:
        return timedelta(minutes=self.lockout_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> RateLimitPolicy:
        return cls(
            max_attempts=settings.rate_limit_max_attempts,
            window_minutes=settings.rate_limit_window_minutes,
            lockout_minutes=settings.rate_limit_lockout_minutes,
            max_daily_attempts=settings.rate_limit_max_daily_attempts,
        )


@dataclass
class RateLimitRecord:
    """Per-identifier attempt counter. Mutated only under the limiter's lock."""

    attempts: int
    window_start: datetime
    locked_until: datetime | None = None


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single LoginRateLimiter.check() call."""

    allowed: bool
    remaining_attempts: int
    locked_until: datetime | None = None


# ---------------------------------------------------------------------------
# Security audit events
# ---------------------------------------------------------------------------


class SecurityEventType(str, Enum):
    login_attempt = "login_attempt"
    login_success = "login_success"
    login_failure = "login_failure"
    password_reset = "password_reset"
    account_locked = "account_locked"


@dataclass(frozen=True)
class SecurityEventInput:
    """What a caller supplies to SecurityEventLog.record(); the log adds the timestamp."""

    type: SecurityEventType
    identifier: str
    success: bool
    user_id: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class SecurityEvent:
    """An immutable, timestamped audit record."""

    type: SecurityEventType
    identifier: str
    timestamp: datetime
    success: bool
    user_id: str | None = None
    ip: str | None = None
    user_agent: str | None = None
    reason: str | None = None

    @classmethod
    def stamp(cls, event: SecurityEventInput, timestamp: datetime) -> SecurityEvent:
        return cls(
            type=SecurityEventType(event.type),
            identifier=event.identifier,
            timestamp=as_utc(timestamp),
            success=event.success,
            user_id=event.user_id,
            ip=event.ip,
            user_agent=event.user_agent,
            reason=event.reason,
        )


@dataclass(frozen=True)
class SecurityEventFilter:
    """Optional filters for SecurityEventLog.query(). All set fields must match.

    A naive `since` is taken to be UTC.
    """

    identifier: str | None = None
    user_id: str | None = None
    type: SecurityEventType | None = None
    since: datetime | None = None

    def __post_init__(self) -> None:
        if self.since is not None:
            object.__setattr__(self, "since", as_utc(self.since))

    def matches(self, event: SecurityEvent) -> bool:
        if self.identifier is not None and event.identifier != self.identifier:
            return False
        if self.user_id is not None and event.user_id != self.user_id:
            return False
        if self.type is not None and event.type != SecurityEventType(self.type):
            return False
        if self.since is not None and event.timestamp < self.since:
            return False
        return True
