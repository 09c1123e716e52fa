"""
auth/sanitize.py -- Input sanitizers for free text, email addresses and user agents.

All three functions are pure and total: they never raise on string input.

sanitize_free_text() is a blunt heuristic for text that may end up in HTML,
not a substitute for output escaping. Transform order matters and is fixed:
trim, strip angle brackets, drop javascript: / inline handlers / data:, then
truncate.
"""

import re
from typing import Optional

MAX_FREE_TEXT_LENGTH = 1000
MAX_EMAIL_LENGTH = 320  # RFC 5321 mailbox limit

USER_AGENT_MIN_LENGTH = 10
USER_AGENT_MAX_LENGTH = 500
BOT_SIGNATURES = (
    "bot",
    "crawler",
    "spider",
    "scraper",
    "curl",
    "wget",
    "python",
    "java",
    "phantom",
    "headless",
)

_ANGLE_RE = re.compile(r"[<>]")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+=", re.IGNORECASE)
_DATA_PROTOCOL_RE = re.compile(r"data:", re.IGNORECASE)


def sanitize_free_text(value: str) -> str:
    """Strip markup-ish fragments from user text and cap it at 1000 characters."""
    value = value.strip()
    value = _ANGLE_RE.sub("", value)
    value = _JS_PROTOCOL_RE.sub("", value)
    value = _EVENT_HANDLER_RE.sub("", value)
    value = _DATA_PROTOCOL_RE.sub("", value)
    return value[:MAX_FREE_TEXT_LENGTH]


def sanitize_email_address(value: str) -> str:
    """Lowercase, trim, and cap an email address at 320 characters.

    The cut can land on interior whitespace, so the result is right-trimmed
    once more after truncation.
    """
    return value.lower().strip()[:MAX_EMAIL_LENGTH].rstrip()


def is_plausible_user_agent(user_agent: Optional[str]) -> bool:
    """Return False for missing, oddly sized, or known-automation user agents."""
    if not user_agent:
        return False
    if not USER_AGENT_MIN_LENGTH <= len(user_agent) <= USER_AGENT_MAX_LENGTH:
        return False
    lowered = user_agent.lower()
    return not any(sig in lowered for sig in BOT_SIGNATURES)
