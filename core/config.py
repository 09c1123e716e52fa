"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for AuthGuard happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. rate_limit_max_attempts -> RATE_LIMIT_MAX_ATTEMPTS). Type coercion
      and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used to reject a password policy or
      rate-limit policy that could never be satisfied.

Settings are read once at process start and then treated as immutable. The
domain objects in auth/ never read Settings themselves; they take plain
policy dataclasses built from it (PasswordPolicyConfig.from_settings(),
RateLimitPolicy.from_settings()), so tests can construct them directly.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authguard.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The defaults are the reference
    thresholds of the security core.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    secure_cookies: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Password policy
    # ------------------------------------------------------------------

    password_min_length: int = 8
    password_max_length: int = 128
    password_max_consecutive_chars: int = 3
    password_min_unique_chars: int = 4

    # ------------------------------------------------------------------
    # Login rate limiting
    # ------------------------------------------------------------------

    rate_limit_max_attempts: int = 5
    rate_limit_window_minutes: int = 15
    rate_limit_lockout_minutes: int = 30
    # Declared for parity with the deployed configuration. No limiter
    # transition reads it; see DESIGN.md (open questions).
    rate_limit_max_daily_attempts: int = 50

    # Per-IP HTTP throttle applied by slowapi on the login and password routes.
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    audit_log_capacity: int = 1000
    # Empty string means no persistence hook: the in-memory log is the only store.
    audit_db_url: str = ""
    # Shared secret for GET /api/v1/security/events (X-API-Key header).
    # Empty string disables the route entirely.
    audit_api_key: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Refuse to start with a policy that cannot be satisfied.

        A minimum length above the maximum length would reject every
        password; a zero attempt budget or capacity would lock out every
        identifier or drop every audit event.
        """
        if self.password_min_length < 1:
            raise ValueError("PASSWORD_MIN_LENGTH must be at least 1.")
        if self.password_min_length > self.password_max_length:
            raise ValueError("PASSWORD_MIN_LENGTH must not exceed PASSWORD_MAX_LENGTH.")
        for name in (
            "rate_limit_max_attempts",
            "rate_limit_window_minutes",
            "rate_limit_lockout_minutes",
            "audit_log_capacity",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name.upper()} must be a positive integer.")
        # Short shared secrets are guessable; same floor as a 128-bit hex key.
        if self.audit_api_key and len(self.audit_api_key) < 32:
            raise ValueError("AUDIT_API_KEY must be at least 32 characters.")
        if self.debug:
            logger.warning("DEBUG mode enabled -- security events are echoed to the log.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
