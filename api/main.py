"""
api/main.py -- FastAPI application entry point for AuthGuard.

Exposes the authentication security core over HTTP so the browser frontend
can run its login, password-change and monitoring flows against one
process-wide limiter and audit log.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  0. log_requests              -- latency line per request
  1. SecurityHeadersMiddleware -- stamps hardening headers on every response
  2. CSRFMiddleware            -- double-submit check on unsafe methods
  3. SlowAPIMiddleware         -- enforces per-IP route limits from api.limiter
  4. CORSMiddleware            -- adds CORS headers for allowed browser origins
  5. TrustedHostMiddleware     -- rejects requests with unexpected Host headers

Lifespan owns the security state: it constructs exactly one
LoginRateLimiter, one SecurityEventLog and one LoginGuard and stores them on
app.state. Route handlers reach them through request.app.state; there are no
module-level singletons, so tests get isolation by swapping the lifespan.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.middleware import CSRFMiddleware, SecurityHeadersMiddleware
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.security import router as security_router
from auth.audit import SecurityEventLog
from auth.audit_store import SecurityEventStore
from auth.login import LoginGuard
from auth.models import PasswordPolicyConfig, RateLimitPolicy
from auth.rate_limiter import LoginRateLimiter
from auth.tokens import EntropyError
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authguard.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------

_PURGE_INTERVAL_SECONDS = 10 * 60


async def _purge_loop(app: FastAPI) -> None:
    """Drop expired rate-limit records every 10 minutes.

    Purging only bounds memory: expiry itself is evaluated lazily in
    LoginRateLimiter.check(), so a skipped purge never changes a decision.
    """
    while True:
        await asyncio.sleep(_PURGE_INTERVAL_SECONDS)
        app.state.login_limiter.purge_expired()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_security_state(app: FastAPI) -> None:
    """Construct the limiter, audit log and guard from Settings onto app.state."""
    app.state.password_policy = PasswordPolicyConfig.from_settings(_settings)
    app.state.login_limiter = LoginRateLimiter(RateLimitPolicy.from_settings(_settings))

    app.state.audit_store = None
    sink = None
    if _settings.audit_db_url:
        app.state.audit_store = SecurityEventStore(_settings.audit_db_url)
        sink = app.state.audit_store.append
        logger.info("Audit persistence enabled")

    app.state.audit_log = SecurityEventLog(
        capacity=_settings.audit_log_capacity,
        sink=sink,
        echo=_settings.debug,
    )
    app.state.login_guard = LoginGuard(app.state.login_limiter, app.state.audit_log)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build security state on startup; cancel the purge task and close the store on shutdown."""
    logger.info("AuthGuard API starting up")
    build_security_state(app)
    logger.info(
        "Security core initialized (max_attempts=%d window=%dm lockout=%dm audit_capacity=%d)",
        _settings.rate_limit_max_attempts,
        _settings.rate_limit_window_minutes,
        _settings.rate_limit_lockout_minutes,
        _settings.audit_log_capacity,
    )
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    with suppress(asyncio.CancelledError):
        await app.state.purge_task
    if app.state.audit_store is not None:
        app.state.audit_store.close()
    logger.info("AuthGuard API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AuthGuard API",
    description="Password policy, login rate limiting and security audit logging.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Each add_middleware() call wraps everything registered before it, so the
# last one added is the first to see a request. Security headers are added
# last so they also land on CSRF rejections.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-CSRF-Token", "X-API-Key"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CSRFMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(security_router, prefix="/api/v1", tags=["Security"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when the per-IP limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a dict detail. When detail is
    already a structured dict, use it directly as the error field rather than
    stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(EntropyError)
async def entropy_error_handler(request: Request, exc: EntropyError) -> JSONResponse:
    """Return 503 when no secure randomness is available. Never degrade to a weaker token."""
    logger.error("Token generation failed on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content=ErrorResponse(
            error=ErrorDetail(
                code="entropy_unavailable",
                message="Secure token generation is temporarily unavailable.",
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration state. No rate limit and no CSRF check.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
