"""Tests for the authguard command-line entry point (main.py)."""

import json
import re

from auth.models import PasswordEvaluation
from auth.tokens import EntropyError
from main import build_parser, main, render_evaluation


class TestPasswordCommand:
    def test_valid_password_exits_zero(self, capsys):
        assert main(["password", "StrongP@ss1", "--no-color"]) == 0
        out = capsys.readouterr().out
        assert "Score: 90/100" in out
        assert "VALID" in out

    def test_invalid_password_exits_one(self, capsys):
        assert main(["password", "weak", "--no-color"]) == 1
        out = capsys.readouterr().out
        assert "INVALID" in out
        assert "Problems:" in out

    def test_json_output(self, capsys):
        assert main(["password", "JohnSmith2024!", "--first-name", "John", "--json"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert set(data) == {"score", "is_valid", "errors", "suggestions"}
        assert any("personal information" in e for e in data["errors"])


class TestTokenCommand:
    def test_prints_requested_count(self, capsys):
        assert main(["token", "--count", "3"]) == 0
        lines = capsys.readouterr().out.split()
        assert len(lines) == 3
        assert all(re.fullmatch(r"[0-9a-f]{64}", line) for line in lines)

    def test_entropy_failure_exits_two(self, capsys, monkeypatch):
        def _broken() -> str:
            raise EntropyError("no entropy")

        monkeypatch.setattr("main.generate_token", _broken)
        assert main(["token"]) == 2
        assert "no entropy" in capsys.readouterr().err


class TestUserAgentCommand:
    def test_plausible(self, capsys):
        ua = "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"
        assert main(["user-agent", ua]) == 0
        assert capsys.readouterr().out.strip() == "plausible"

    def test_rejected(self, capsys):
        assert main(["user-agent", "python-requests/2.31.0"]) == 1
        assert capsys.readouterr().out.strip() == "rejected"


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: authguard" in capsys.readouterr().out


def test_parser_subcommands():
    args = build_parser().parse_args(["password", "x", "--email", "a@b.c"])
    assert args.command == "password"
    assert args.email == "a@b.c"


def test_render_evaluation_without_color():
    result = PasswordEvaluation(score=40, is_valid=False, errors=["Too short"], suggestions=["Use a longer password"])
    text = render_evaluation(result)
    assert "\033[" not in text
    assert "    - Too short" in text
    assert "    - Use a longer password" in text
