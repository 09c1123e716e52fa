"""Unit tests for auth/sanitize.py.

Covers:
- sanitize_free_text: angle brackets, javascript:/data: protocols, inline
  event handlers, trimming, 1000-char cap
- sanitize_email_address: lowercase, trim, RFC 5321 cap
- is_plausible_user_agent: length bounds and bot signatures
"""

import pytest

from auth.sanitize import is_plausible_user_agent, sanitize_email_address, sanitize_free_text


class TestSanitizeFreeText:
    def test_removes_angle_brackets(self):
        assert sanitize_free_text('<script>alert("xss")</script>Hello World') == 'scriptalert("xss")/scriptHello World'

    def test_removes_javascript_protocol(self):
        assert sanitize_free_text('javascript:alert("xss")') == 'alert("xss")'

    def test_protocol_match_is_case_insensitive(self):
        assert sanitize_free_text("JaVaScRiPt:go DATA:x") == "go x"

    def test_removes_event_handlers(self):
        assert sanitize_free_text('onclick=alert("xss")') == 'alert("xss")'
        assert sanitize_free_text("img OnError=steal()") == "img steal()"

    def test_limits_length(self):
        assert len(sanitize_free_text("a" * 2000)) == 1000

    def test_trims_whitespace(self):
        assert sanitize_free_text("   hello world   ") == "hello world"

    def test_plain_text_is_unchanged(self):
        assert sanitize_free_text("Invoice #1042 paid in full") == "Invoice #1042 paid in full"


class TestSanitizeEmailAddress:
    def test_lowercases(self):
        assert sanitize_email_address("USER@EXAMPLE.COM") == "user@example.com"

    def test_trims(self):
        assert sanitize_email_address("  user@example.com  ") == "user@example.com"

    def test_rfc_5321_limit(self):
        assert len(sanitize_email_address("a" * 400 + "@example.com")) == 320

    @pytest.mark.parametrize("raw", ["  MiXeD@Example.COM ", "x" * 319 + " y", "\tA@B.C\n", ""])
    def test_output_is_lowercase_trimmed_and_bounded(self, raw):
        out = sanitize_email_address(raw)
        assert out == out.lower()
        assert out == out.strip()
        assert len(out) <= 320


class TestIsPlausibleUserAgent:
    def test_browser_user_agent(self):
        ua = (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        )
        assert is_plausible_user_agent(ua) is True

    def test_too_short(self):
        assert is_plausible_user_agent("short") is False

    def test_too_long(self):
        assert is_plausible_user_agent("a" * 600) is False

    @pytest.mark.parametrize(
        "ua",
        [
            "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
            "Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)",
            "curl/7.68.0",
            "python-requests/2.25.1",
            "Mozilla/5.0 HeadlessChrome/120.0",
        ],
    )
    def test_bot_signatures(self, ua):
        assert is_plausible_user_agent(ua) is False

    @pytest.mark.parametrize("ua", ["", None])
    def test_empty_or_missing(self, ua):
        assert is_plausible_user_agent(ua) is False
