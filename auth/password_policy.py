"""
auth/password_policy.py -- Password strength scoring and policy validation.

evaluate() is a pure function of the candidate password, the policy, and
optional identity hints. It never raises: every violation is reported in the
returned PasswordEvaluation.errors list and weighs on the score.

Scoring model: each rule below is checked independently and either adds to
or subtracts from a running total. The total is clamped to [0, 100] at the
end. A password is valid only when no rule produced an error AND the clamped
score is at least PASSING_SCORE.

  +20  length >= min_length           (error otherwise)
       length <= max_length           (error otherwise, no score effect)
  +15  each of upper/lower/digit/special present (error otherwise)
  -50  exact case-insensitive match on the common-password deny-list
  -10  run of identical or sequential characters longer than max_consecutive_chars
  -10  fewer than min_unique_chars distinct characters (+10 if 8 or more)
  -20  contains a non-empty identity hint (first match only)
  -15  contains a keyboard pattern (first match only)
  +10  length >= 12, and another +10 at length >= 16

Rule order does not change the score or the error set. errors and
suggestions are emitted in the table order above so output is stable.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import re

from auth.models import PasswordEvaluation, PasswordHints, PasswordPolicyConfig

PASSING_SCORE = 60

SPECIAL_CHARS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"
_SPECIAL_RE = re.compile(f"[{re.escape(SPECIAL_CHARS)}]")
_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")

# Stored lowercase; membership is tested against password.lower().
COMMON_PASSWORDS: frozenset[str] = frozenset(
    p.lower()
    for p in (
        "password", "123456", "qwerty", "admin", "letmein", "welcome",
        "123456789", "password123", "admin123", "qwerty123", "abc123",
        "password1", "Password1", "password!", "Password!", "12345678",
        "iloveyou", "princess", "monkey", "dragon", "sunshine", "football",
        "baseball", "superman", "michael", "jennifer", "charlie", "aa123456",
    )
)  # fmt: skip

KEYBOARD_PATTERNS: tuple[str, ...] = (
    "qwerty",
    "asdf",
    "zxcv",
    "123456",
    "abcdef",
    "qwertyuiop",
    "asdfghjkl",
    "zxcvbnm",
)

_DEFAULT_POLICY = PasswordPolicyConfig()


def longest_run(password: str) -> int:
    """Length of the longest run of repeated or +/-1 sequential characters.

    "aaa", "abc" and "cba" are all runs of 3. A run continues as long as each
    character equals, or is one code point above or below, the previous one.
    """
    if not password:
        return 0
    longest = current = 1
    for prev, char in zip(password, password[1:]):
        if abs(ord(char) - ord(prev)) <= 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def evaluate(
    password: str,
    hints: PasswordHints | None = None,
    policy: PasswordPolicyConfig = _DEFAULT_POLICY,
) -> PasswordEvaluation:
    """Score a candidate password and list every policy violation.

    Args:
        password: The candidate, exactly as the user typed it. Never logged.
        hints:    Optional identity fragments (first/last name, email local
                  part) the password must not contain.
        policy:   Thresholds; defaults to the reference policy.
    """
    errors: list[str] = []
    score = 0
    length = len(password)
    lowered = password.lower()

    if length < policy.min_length:
        errors.append(f"Password must be at least {policy.min_length} characters long")
    else:
        score += 20

    if length > policy.max_length:
        errors.append(f"Password must be less than {policy.max_length} characters")

    has_special = bool(_SPECIAL_RE.search(password))
    class_checks = (
        (policy.require_uppercase, _UPPER_RE.search(password), "Password must contain at least one uppercase letter"),
        (policy.require_lowercase, _LOWER_RE.search(password), "Password must contain at least one lowercase letter"),
        (policy.require_digit, _DIGIT_RE.search(password), "Password must contain at least one number"),
        (
            policy.require_special,
            has_special,
            f"Password must contain at least one special character ({SPECIAL_CHARS})",
        ),
    )
    for required, present, message in class_checks:
        if present:
            score += 15
        elif required:
            errors.append(message)

    if lowered in COMMON_PASSWORDS:
        errors.append("Password is too common. Please choose a stronger password")
        score -= 50

    if longest_run(password) > policy.max_consecutive_chars:
        errors.append(
            f"Password should not contain more than {policy.max_consecutive_chars} consecutive characters"
        )
        score -= 10

    unique_chars = len(set(lowered))
    if unique_chars < policy.min_unique_chars:
        errors.append(f"Password should contain at least {policy.min_unique_chars} unique characters")
        score -= 10
    elif unique_chars >= 8:
        score += 10

    if hints is not None and any(h in lowered for h in hints.values()):
        errors.append("Password should not contain personal information")
        score -= 20

    if any(pattern in lowered for pattern in KEYBOARD_PATTERNS):
        errors.append("Password should not contain keyboard patterns")
        score -= 15

    if length >= 12:
        score += 10
    if length >= 16:
        score += 10

    score = max(0, min(100, score))

    suggestions: list[str] = []
    if score < PASSING_SCORE:
        if length < 12:
            suggestions.append("Consider using a longer password (12+ characters)")
        if not has_special:
            suggestions.append("Add special characters for better security")
        if unique_chars < 6:
            suggestions.append("Use more unique characters")
        suggestions.append("Consider using a passphrase with multiple words")

    return PasswordEvaluation(
        score=score,
        is_valid=not errors and score >= PASSING_SCORE,
        errors=errors,
        suggestions=suggestions,
    )
