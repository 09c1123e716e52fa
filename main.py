#!/usr/bin/env python3
"""
AuthGuard -- command-line access to the authentication security core.

Usage:
  python main.py password 'StrongP@ssw0rd123!'
  python main.py password 'JohnSmith2024!' --first-name John --email john@example.com
  python main.py password 'weak123' --json
  python main.py token
  python main.py token --count 3
  python main.py user-agent 'curl/7.68.0'

Exit status is 1 when a password fails the policy or a user agent is
rejected, so the commands can gate shell scripts and CI jobs.

Environment variables:
  PASSWORD_MIN_LENGTH, PASSWORD_MAX_LENGTH, PASSWORD_MAX_CONSECUTIVE_CHARS,
  PASSWORD_MIN_UNIQUE_CHARS   Override the password policy thresholds.
"""

import argparse
import json
import os
import sys
from typing import Optional

from auth.models import PasswordEvaluation, PasswordHints, PasswordPolicyConfig
from auth.password_policy import evaluate
from auth.sanitize import is_plausible_user_agent
from auth.tokens import EntropyError, generate_token
from core.config import get_settings

_GREEN = "\033[32m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


def _use_color(no_color: bool) -> bool:
    """Color only on a TTY, and never when NO_COLOR is set (https://no-color.org)."""
    if no_color or os.environ.get("NO_COLOR"):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _paint(text: str, color: str, enabled: bool) -> str:
    return f"{color}{text}{_RESET}" if enabled else text


def render_evaluation(result: PasswordEvaluation, color: bool = False) -> str:
    """Render an evaluation as the terminal report printed by `password`."""
    verdict = _paint("VALID", _GREEN, color) if result.is_valid else _paint("INVALID", _RED, color)
    lines = [f"  Score: {result.score}/100  {verdict}"]
    if result.errors:
        lines.append("")
        lines.append("  Problems:")
        lines.extend(f"    - {e}" for e in result.errors)
    if result.suggestions:
        lines.append("")
        lines.append("  Suggestions:")
        lines.extend(f"    - {_paint(s, _YELLOW, color)}" for s in result.suggestions)
    return "\n".join(lines)


def _cmd_password(args: argparse.Namespace) -> int:
    policy = PasswordPolicyConfig.from_settings(get_settings())
    hints: Optional[PasswordHints] = None
    if args.first_name or args.last_name or args.email:
        hints = PasswordHints.from_identity(args.first_name, args.last_name, args.email)
    result = evaluate(args.password, hints, policy=policy)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(render_evaluation(result, color=_use_color(args.no_color)))
    return 0 if result.is_valid else 1


def _cmd_token(args: argparse.Namespace) -> int:
    try:
        for _ in range(args.count):
            print(generate_token())
    except EntropyError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 2
    return 0


def _cmd_user_agent(args: argparse.Namespace) -> int:
    ok = is_plausible_user_agent(args.user_agent)
    print("plausible" if ok else "rejected")
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authguard",
        description="Password policy checks, secure tokens and user-agent screening.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py password 'StrongP@ssw0rd123!'
  python main.py password 'weak123' --json
  python main.py token --count 2
  python main.py user-agent 'Mozilla/5.0 (X11; Linux x86_64)'
        """,
    )
    sub = parser.add_subparsers(dest="command")

    p_password = sub.add_parser("password", help="Score a password against the policy")
    p_password.add_argument("password", help="Candidate password (quote it for the shell)")
    p_password.add_argument("--first-name", metavar="NAME", help="Reject passwords containing this name")
    p_password.add_argument("--last-name", metavar="NAME", help="Reject passwords containing this name")
    p_password.add_argument("--email", metavar="EMAIL", help="Reject passwords containing the email local part")
    p_password.add_argument("--json", action="store_true", help="Output structured JSON")
    p_password.add_argument("--no-color", action="store_true", help="Disable ANSI color codes")
    p_password.set_defaults(func=_cmd_password)

    p_token = sub.add_parser("token", help="Print 64-character hex tokens")
    p_token.add_argument("--count", type=int, default=1, metavar="N", help="How many tokens (default: 1)")
    p_token.set_defaults(func=_cmd_token)

    p_ua = sub.add_parser("user-agent", help="Screen a User-Agent string for automation signatures")
    p_ua.add_argument("user_agent", metavar="UA", help="User-Agent header value")
    p_ua.set_defaults(func=_cmd_user_agent)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
