"""
API request and response models for AuthGuard REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import PasswordEvaluation, RateLimitDecision, SecurityEvent, SecurityEventType

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class PasswordEvaluateRequest(BaseModel):
    """Request body for POST /api/v1/security/password/evaluate.

    The password is not stripped: leading/trailing whitespace is part of the
    candidate. max_length is a transport cap well above the policy maximum so
    the evaluator, not the validator, reports over-long passwords.
    """

    password: str = Field(max_length=1024)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=320)


class LoginAttemptRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    identifier: str = Field(min_length=1, max_length=320)


class LoginOutcomeRequest(BaseModel):
    """Request body for POST /api/v1/security/login/outcome."""

    model_config = ConfigDict(str_strip_whitespace=True)

    identifier: str = Field(min_length=1, max_length=320)
    success: bool
    user_id: Optional[str] = Field(default=None, max_length=64)
    reason: Optional[str] = Field(default=None, max_length=1000)


class PasswordResetRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    identifier: str = Field(min_length=1, max_length=320)
    success: bool = True
    user_id: Optional[str] = Field(default=None, max_length=64)
    reason: Optional[str] = Field(default=None, max_length=1000)


class RecommendationsRequest(BaseModel):
    role: str = Field(min_length=1, max_length=30)
    last_login: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PasswordEvaluationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int
    is_valid: bool
    errors: list[str]
    suggestions: list[str]

    @classmethod
    def from_domain(cls, evaluation: PasswordEvaluation) -> "PasswordEvaluationResponse":
        return cls(**evaluation.to_dict())


class LoginAttemptResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining_attempts: int
    locked_until: Optional[datetime] = None

    @classmethod
    def from_domain(cls, decision: RateLimitDecision) -> "LoginAttemptResponse":
        return cls(
            allowed=decision.allowed,
            remaining_attempts=decision.remaining_attempts,
            locked_until=decision.locked_until,
        )


class SecurityEventResponse(BaseModel):
    """One audit log entry as returned by GET /api/v1/security/events."""

    model_config = ConfigDict(frozen=True)

    type: SecurityEventType
    identifier: str
    timestamp: datetime
    success: bool
    user_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def from_domain(cls, event: SecurityEvent) -> "SecurityEventResponse":
        return cls(
            type=event.type,
            identifier=event.identifier,
            timestamp=event.timestamp,
            success=event.success,
            user_id=event.user_id,
            ip=event.ip,
            user_agent=event.user_agent,
            reason=event.reason,
        )


class RecommendationsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommendations: list[str]


class CsrfTokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    csrf_token: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
