"""
api/routes/v1/security.py -- REST endpoints over the authentication security core.

Routes:
  GET  /api/v1/security/csrf-token          -- issue a CSRF token + cookie (public)
  POST /api/v1/security/password/evaluate   -- score a candidate password (public)
  POST /api/v1/security/login/attempt       -- count a login attempt; 429 when locked
  POST /api/v1/security/login/outcome       -- report the credential check result
  POST /api/v1/security/password-reset      -- record a password reset
  POST /api/v1/security/recommendations     -- account hardening advice (public)
  GET  /api/v1/security/events              -- query the audit log (X-API-Key)

The credential check itself happens in the hosted identity backend. The
frontend calls /login/attempt before it and /login/outcome after it.

Security:
  Per-IP throttling via slowapi on /login/attempt and /password/evaluate, in
  addition to the per-identifier lockout enforced by LoginGuard.
  Cache-Control: no-store on every response that echoes password analysis
  or lockout state.
  Client-supplied free text (reason, user agent) passes through
  sanitize_free_text() before it reaches the audit log.
"""

from __future__ import annotations

import hmac
import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.middleware import CSRF_COOKIE_NAME
from api.models import (
    CsrfTokenResponse,
    ErrorDetail,
    ErrorResponse,
    LoginAttemptRequest,
    LoginAttemptResponse,
    LoginOutcomeRequest,
    PasswordEvaluateRequest,
    PasswordEvaluationResponse,
    PasswordResetRequest,
    RecommendationsRequest,
    RecommendationsResponse,
    SecurityEventResponse,
)
from auth.login import LoginGuard
from auth.models import PasswordHints, SecurityEventFilter, SecurityEventType
from auth.password_policy import evaluate
from auth.recommendations import account_recommendations
from auth.sanitize import sanitize_email_address, sanitize_free_text
from auth.tokens import generate_csrf_token
from core.config import get_settings

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _user_agent(request: Request) -> Optional[str]:
    ua = request.headers.get("User-Agent")
    return sanitize_free_text(ua) if ua else None


def require_audit_reader(request: Request) -> None:
    """Require the X-API-Key header to match AUDIT_API_KEY.

    Raises HTTP 403 if the route is disabled (no key configured) and HTTP 401
    if the header is missing or wrong.
    """
    expected = get_settings().audit_api_key
    if not expected:
        raise HTTPException(
            status_code=403,
            detail={"code": "audit_disabled", "message": "Audit log access is not configured."},
        )
    supplied = request.headers.get("X-API-Key", "")
    if not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "A valid X-API-Key header is required."},
        )


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.get("/security/csrf-token", response_model=CsrfTokenResponse)
async def issue_csrf_token() -> JSONResponse:
    """Issue a fresh CSRF token and set it as the double-submit cookie."""
    token = generate_csrf_token()
    resp = JSONResponse(content=CsrfTokenResponse(csrf_token=token).model_dump())
    resp.set_cookie(
        CSRF_COOKIE_NAME,
        value=token,
        httponly=False,  # the frontend must read it to echo it in X-CSRF-Token
        samesite="lax",
        secure=get_settings().secure_cookies,
        path="/",
    )
    return resp


@limiter.limit(LOGIN_RATE_LIMIT)
@router.post("/security/password/evaluate", response_model=PasswordEvaluationResponse)
def evaluate_password(request: Request, body: PasswordEvaluateRequest) -> JSONResponse:
    """Score a candidate password against the configured policy."""
    hints = PasswordHints.from_identity(body.first_name, body.last_name, body.email)
    result = evaluate(body.password, hints, policy=request.app.state.password_policy)
    resp = JSONResponse(content=PasswordEvaluationResponse.from_domain(result).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/security/recommendations", response_model=RecommendationsResponse)
async def recommendations(body: RecommendationsRequest) -> RecommendationsResponse:
    return RecommendationsResponse(recommendations=account_recommendations(body.role, body.last_login))


# ---------------------------------------------------------------------------
# Login flow
# ---------------------------------------------------------------------------


@limiter.limit(LOGIN_RATE_LIMIT)
@router.post("/security/login/attempt", response_model=LoginAttemptResponse)
def login_attempt(request: Request, body: LoginAttemptRequest) -> JSONResponse:
    """Count one login attempt for the identifier.

    Returns 200 with the remaining attempt budget, or 429 account_locked with
    Retry-After set to the seconds until the lockout ends.
    """
    guard: LoginGuard = request.app.state.login_guard
    decision = guard.begin(body.identifier, ip=_client_ip(request), user_agent=_user_agent(request))

    if not decision.allowed:
        locked_until = decision.locked_until
        retry_after = 0
        if locked_until is not None:
            retry_after = max(0, math.ceil((locked_until - datetime.now(timezone.utc)).total_seconds()))
        resp = JSONResponse(
            status_code=429,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="account_locked",
                    message="Too many login attempts. Try again later.",
                    detail=locked_until.isoformat() if locked_until else None,
                )
            ).model_dump(),
        )
        resp.headers["Retry-After"] = str(retry_after)
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(content=LoginAttemptResponse.from_domain(decision).model_dump(mode="json"))
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/security/login/outcome", status_code=204)
def login_outcome(request: Request, body: LoginOutcomeRequest) -> None:
    """Record the credential check result. Success clears the identifier's counter."""
    guard: LoginGuard = request.app.state.login_guard
    ip = _client_ip(request)
    ua = _user_agent(request)
    if body.success:
        guard.succeed(body.identifier, user_id=body.user_id, ip=ip, user_agent=ua)
    else:
        reason = sanitize_free_text(body.reason) if body.reason else None
        guard.fail(body.identifier, reason=reason, user_id=body.user_id, ip=ip, user_agent=ua)


@router.post("/security/password-reset", status_code=204)
def password_reset(request: Request, body: PasswordResetRequest) -> None:
    guard: LoginGuard = request.app.state.login_guard
    reason = sanitize_free_text(body.reason) if body.reason else None
    guard.password_reset(
        body.identifier,
        success=body.success,
        user_id=body.user_id,
        reason=reason,
        ip=_client_ip(request),
    )


# ---------------------------------------------------------------------------
# Audit log (X-API-Key)
# ---------------------------------------------------------------------------


@router.get(
    "/security/events",
    response_model=list[SecurityEventResponse],
    dependencies=[Depends(require_audit_reader)],
)
def list_events(
    request: Request,
    identifier: Optional[str] = Query(default=None, max_length=320),
    user_id: Optional[str] = Query(default=None, max_length=64),
    type: Optional[SecurityEventType] = Query(default=None),
    since: Optional[datetime] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
) -> list[SecurityEventResponse]:
    """Return audit events matching every supplied filter, newest first."""
    filters = SecurityEventFilter(
        identifier=sanitize_email_address(identifier) if identifier else None,
        user_id=user_id,
        type=type,
        since=since,
    )
    events = request.app.state.audit_log.query(filters)
    return [SecurityEventResponse.from_domain(e) for e in events[:limit]]
