"""
auth/recommendations.py -- Account hardening advice and HTTP security headers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from auth.models import as_utc

STALE_LOGIN_AFTER = timedelta(days=30)

# Applied to every HTTP response by api/middleware.py.
SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

_ROLE_ADVICE: dict[str, tuple[str, ...]] = {
    "admin": (
        "Enable two-factor authentication for enhanced security",
        "Regularly review user access and permissions",
        "Monitor security logs for suspicious activity",
    ),
    "manager": (
        "Enable two-factor authentication",
        "Use strong, unique passwords",
    ),
}


def account_recommendations(
    role: str,
    last_login: datetime | None = None,
    now: datetime | None = None,
) -> list[str]:
    """Return security recommendations for an account.

    Accounts idle for more than 30 days are nudged to rotate their password;
    privileged roles get role-specific advice. Naive datetimes are treated
    as UTC.
    """
    now = now or datetime.now(timezone.utc)
    recommendations: list[str] = []

    if last_login is not None:
        if (as_utc(now) - as_utc(last_login)).days > STALE_LOGIN_AFTER.days:
            recommendations.append("Consider changing your password regularly")

    recommendations.extend(_ROLE_ADVICE.get(role.lower(), ()))
    return recommendations
