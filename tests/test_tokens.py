"""Unit tests for auth/tokens.py -- token generation and CSRF validation.

Covers:
- 64-char lowercase hex output, distinct values across calls
- Entropy failure propagates as EntropyError (no weaker fallback)
- validate_csrf_token length/equality rules and hostile inputs
"""

import re

import pytest

from auth.tokens import EntropyError, generate_csrf_token, generate_token, validate_csrf_token

_HEX64 = re.compile(r"^[0-9a-f]{64}$")


class TestGenerateToken:
    def test_format(self):
        assert _HEX64.match(generate_token())

    def test_csrf_token_format(self):
        assert _HEX64.match(generate_csrf_token())

    def test_consecutive_tokens_differ(self):
        assert generate_token() != generate_token()

    def test_uses_injected_source(self):
        assert generate_token(lambda n: b"\x01" * n) == "01" * 32

    def test_entropy_failure_propagates(self):
        def failing_source(n: int) -> bytes:
            raise OSError("getrandom failed")

        with pytest.raises(EntropyError) as exc_info:
            generate_token(failing_source)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_short_read_is_an_error(self):
        with pytest.raises(EntropyError):
            generate_token(lambda n: b"\x00" * (n - 1))


class TestValidateCsrfToken:
    def test_matching_tokens(self):
        token = "a" * 64
        assert validate_csrf_token(token, token) is True

    def test_mismatched_tokens(self):
        assert validate_csrf_token("a" * 64, "b" * 64) is False

    def test_wrong_length(self):
        assert validate_csrf_token("a" * 32, "a" * 64) is False
        assert validate_csrf_token("a" * 32, "a" * 32) is False

    @pytest.mark.parametrize("candidate, expected", [(None, "a" * 64), ("a" * 64, None), ("", ""), (None, None)])
    def test_missing_values(self, candidate, expected):
        assert validate_csrf_token(candidate, expected) is False

    def test_non_ascii_is_rejected(self):
        token = "é" * 64
        assert validate_csrf_token(token, token) is False
