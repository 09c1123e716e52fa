"""
api/middleware.py -- Security headers and CSRF double-submit middleware.

SecurityHeadersMiddleware stamps auth.recommendations.SECURITY_HEADERS onto
every response, including error responses.

CSRFMiddleware implements the double-submit cookie pattern:
  1. GET /api/v1/security/csrf-token issues a token and sets it as the
     `csrf_token` cookie (readable by JS, samesite=lax).
  2. Every unsafe request (POST/PUT/PATCH/DELETE) must echo the cookie value
     in the X-CSRF-Token header. auth.tokens.validate_csrf_token() compares
     the two in constant time.
A cross-site attacker can make the browser send the cookie but cannot read
it, so it cannot produce the matching header.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from api.models import ErrorDetail, ErrorResponse
from auth.recommendations import SECURITY_HEADERS
from auth.tokens import validate_csrf_token

logger = logging.getLogger("authguard.api")

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"

_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
_CSRF_EXEMPT_PATHS = ("/api/v1/health", "/api/v1/security/csrf-token")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class CSRFMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.method not in _SAFE_METHODS and request.url.path not in _CSRF_EXEMPT_PATHS:
            cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
            header_token = request.headers.get(CSRF_HEADER_NAME)
            if not validate_csrf_token(header_token, cookie_token):
                logger.warning(
                    "CSRF validation failed for %s %s (cookie=%s header=%s)",
                    request.method,
                    request.url.path,
                    "present" if cookie_token else "missing",
                    "present" if header_token else "missing",
                )
                return JSONResponse(
                    status_code=403,
                    content=ErrorResponse(
                        error=ErrorDetail(
                            code="csrf_failed",
                            message="CSRF token missing or invalid.",
                        )
                    ).model_dump(),
                )
        return await call_next(request)
