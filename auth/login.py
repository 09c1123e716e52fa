"""
auth/login.py -- Login flow orchestration over the rate limiter and audit log.

LoginGuard is the seam request handlers call around a credential check that
happens elsewhere (the hosted identity backend):

    decision = guard.begin(email, ip=ip, user_agent=ua)
    if not decision.allowed:
        ...  # 429, show decision.locked_until
    if backend_says_ok:
        guard.succeed(email, user_id=uid)
    else:
        guard.fail(email, reason="Invalid password")

Every call writes to the audit log, successful or not. Identifiers are
normalized with sanitize_email_address() so "User@Example.com " and
"user@example.com" share one rate-limit record.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime

from auth.audit import SecurityEventLog
from auth.models import RateLimitDecision, SecurityEventInput, SecurityEventType
from auth.rate_limiter import LoginRateLimiter
from auth.sanitize import is_plausible_user_agent, sanitize_email_address


class LoginGuard:
    """Combines LoginRateLimiter and SecurityEventLog for the login flow.

    Both collaborators are injected; the guard owns no state of its own.
    """

    def __init__(self, limiter: LoginRateLimiter, audit_log: SecurityEventLog) -> None:
        self.limiter = limiter
        self.audit_log = audit_log

    def begin(
        self,
        identifier: str,
        ip: str | None = None,
        user_agent: str | None = None,
        now: datetime | None = None,
    ) -> RateLimitDecision:
        """Count an attempt against the limiter and record it."""
        identifier = sanitize_email_address(identifier)
        decision = self.limiter.check(identifier, now=now)

        reason = None
        if user_agent is not None and not is_plausible_user_agent(user_agent):
            reason = "Suspicious user agent"

        self.audit_log.record(
            SecurityEventInput(
                type=SecurityEventType.login_attempt,
                identifier=identifier,
                success=decision.allowed,
                ip=ip,
                user_agent=user_agent,
                reason=reason,
            )
        )

        if not decision.allowed:
            locked_until = decision.locked_until.isoformat() if decision.locked_until else "unknown"
            self.audit_log.record(
                SecurityEventInput(
                    type=SecurityEventType.account_locked,
                    identifier=identifier,
                    success=False,
                    ip=ip,
                    user_agent=user_agent,
                    reason=f"Too many login attempts; locked until {locked_until}",
                )
            )
        return decision

    def succeed(
        self,
        identifier: str,
        user_id: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Reset the identifier's counter and record a successful login."""
        identifier = sanitize_email_address(identifier)
        self.limiter.clear(identifier)
        self.audit_log.record(
            SecurityEventInput(
                type=SecurityEventType.login_success,
                identifier=identifier,
                success=True,
                user_id=user_id,
                ip=ip,
                user_agent=user_agent,
            )
        )

    def fail(
        self,
        identifier: str,
        reason: str | None = None,
        user_id: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Record a failed credential check. The attempt was already counted by begin()."""
        self.audit_log.record(
            SecurityEventInput(
                type=SecurityEventType.login_failure,
                identifier=sanitize_email_address(identifier),
                success=False,
                user_id=user_id,
                ip=ip,
                user_agent=user_agent,
                reason=reason,
            )
        )

    def password_reset(
        self,
        identifier: str,
        success: bool,
        user_id: str | None = None,
        reason: str | None = None,
        ip: str | None = None,
    ) -> None:
        self.audit_log.record(
            SecurityEventInput(
                type=SecurityEventType.password_reset,
                identifier=sanitize_email_address(identifier),
                success=success,
                user_id=user_id,
                ip=ip,
                reason=reason,
            )
        )
