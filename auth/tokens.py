"""
auth/tokens.py -- Secure random tokens and CSRF token validation.

Security design decisions:
  Tokens: 32 bytes from the OS CSPRNG (secrets.token_bytes -> os.urandom),
       hex-encoded to 64 lowercase characters -- 256 bits of entropy.
       The same primitive backs CSRF tokens and session-token callers.

  Entropy failure is fatal. If the random source raises, generate_token()
       logs and re-raises as EntropyError. There is no fallback
       to the `random` module or any other weaker source.

  CSRF comparison: validate_csrf_token() uses hmac.compare_digest so the
       comparison time does not depend on how many leading characters match.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Callable

logger = logging.getLogger("authguard.tokens")

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2  # hex characters


class EntropyError(RuntimeError):
    """The secure random source could not produce bytes."""


def generate_token(random_bytes: Callable[[int], bytes] = secrets.token_bytes) -> str:
    """Return a new 64-character lowercase hex token.

    Args:
        random_bytes: Source of cryptographically secure bytes. Injected in
                      tests; production callers use the default.

    Raises:
        EntropyError: the random source failed or returned too few bytes.
    """
    try:
        raw = random_bytes(TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        logger.error("Secure random source unavailable: %s", exc)
        raise EntropyError("Secure random source unavailable") from exc
    if len(raw) != TOKEN_BYTES:
        logger.error("Secure random source returned %d bytes, expected %d", len(raw), TOKEN_BYTES)
        raise EntropyError("Secure random source returned a short read")
    return raw.hex()


def generate_csrf_token() -> str:
    """Token for the CSRF double-submit cookie."""
    return generate_token()


def validate_csrf_token(candidate: str | None, expected: str | None) -> bool:
    """Return True only if both tokens are 64 characters long and equal.

    Both inputs come from the client (header and cookie), so None and
    non-ASCII values are rejected rather than raised on.
    """
    if not candidate or not expected:
        return False
    if len(candidate) != TOKEN_LENGTH or len(expected) != TOKEN_LENGTH:
        return False
    try:
        return hmac.compare_digest(candidate.encode("ascii"), expected.encode("ascii"))
    except UnicodeEncodeError:
        return False
