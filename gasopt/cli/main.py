"""GasOpt CLI — local estimates and ledger server management.

Usage:
    gasopt estimate --gas <n> --functions <n>   Estimate optimized gas
    gasopt recommend --functions <n>            Show the recommendation set
    gasopt token <caller>                       Mint a development access token
    gasopt config                               Show current configuration
    gasopt serve                                Run the HTTP API

Examples:
    gasopt estimate --gas 120000 --functions 12
    gasopt recommend --functions 3 --json
    gasopt token 0xAbc... --minutes 240
"""

from __future__ import annotations

import argparse
import json
import sys

from gasopt import __version__
from gasopt.core.estimator import estimate, estimation_factor
from gasopt.core.recommendations import recommend


# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


# ── Banner ───────────────────────────────────────────────────────────────────

BANNER = f"""
{_BOLD}{_CYAN}  ⛽ GasOpt Ledger{_RESET}
  {_DIM}Gas optimization report tracking — v{__version__}{_RESET}
"""


# ── CLI argument parser ─────────────────────────────────────────────────────


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value!r} must be positive")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gasopt",
        description="GasOpt — gas optimization report ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--no-banner", action="store_true", help="Suppress the startup banner")

    sub = parser.add_subparsers(dest="command")

    # ── estimate ─────────────────────────────────────────────────────────────
    est_p = sub.add_parser("estimate", help="Estimate optimized gas for a contract")
    est_p.add_argument("--gas", "-g", type=_positive_int, required=True, help="Original gas used")
    est_p.add_argument(
        "--functions", "-n", type=_positive_int, required=True, help="Number of function signatures"
    )
    est_p.add_argument("--json", action="store_true", help="Emit JSON")

    # ── recommend ────────────────────────────────────────────────────────────
    rec_p = sub.add_parser("recommend", help="Show recommendations for a contract size")
    rec_p.add_argument(
        "--functions", "-n", type=_positive_int, required=True, help="Number of function signatures"
    )
    rec_p.add_argument("--json", action="store_true", help="Emit JSON")

    # ── token ────────────────────────────────────────────────────────────────
    tok_p = sub.add_parser("token", help="Mint an access token for a caller identity")
    tok_p.add_argument("caller", help="Caller identity (e.g. wallet address)")
    tok_p.add_argument("--minutes", type=_positive_int, default=None, help="Token lifetime")

    # ── config / serve ───────────────────────────────────────────────────────
    sub.add_parser("config", help="Show current configuration")

    serve_p = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_p.add_argument("--host", default=None, help="Bind address (default: settings.api_host)")
    serve_p.add_argument("--port", type=int, default=None, help="Port (default: settings.api_port)")
    serve_p.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    return parser


# ── Commands ─────────────────────────────────────────────────────────────────


def _run_estimate(args: argparse.Namespace) -> int:
    optimized = estimate(args.gas, args.functions)
    result = {
        "original_gas_used": args.gas,
        "function_count": args.functions,
        "estimation_factor": estimation_factor(args.functions),
        "optimized_gas_used": optimized,
        "gas_saved": max(0, args.gas - optimized),
    }
    if args.json:
        print(json.dumps(result, indent=2))
        return 0

    print(f"\n  {_BOLD}Original gas{_RESET}   {result['original_gas_used']:>12,}")
    print(f"  {_BOLD}Estimated gas{_RESET}  {result['optimized_gas_used']:>12,}")
    print(
        f"  {_BOLD}Saved{_RESET}          "
        f"{_c(format(result['gas_saved'], '>12,'), _GREEN)}  "
        f"{_DIM}({result['estimation_factor']}% tier){_RESET}\n"
    )
    return 0


def _run_recommend(args: argparse.Namespace) -> int:
    items = list(recommend(args.functions))
    if args.json:
        print(json.dumps(items, indent=2))
        return 0

    print()
    for i, item in enumerate(items, 1):
        print(f"  {_DIM}{i}.{_RESET} {item}")
    print()
    return 0


def _run_token(args: argparse.Namespace) -> int:
    from gasopt.api.middleware.auth import create_access_token

    print(create_access_token(args.caller, expires_minutes=args.minutes))
    return 0


def _run_config() -> int:
    """Print current settings (redacted)."""
    from gasopt.core.config import get_settings

    s = get_settings()
    print(f"\n{_BOLD}GasOpt Configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        val = getattr(s, field_name, "")
        if any(kw in field_name for kw in ("password", "secret", "key", "token")):
            val = "****" if val else "(not set)"
        print(f"  {_DIM}{field_name}:{_RESET}  {val}")
    print()
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from gasopt.core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "gasopt.api.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"gasopt {__version__}")
        return 0

    if not args.no_banner and args.command not in ("token", None) and not getattr(args, "json", False):
        print(BANNER, file=sys.stderr)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "estimate":
        return _run_estimate(args)
    if args.command == "recommend":
        return _run_recommend(args)
    if args.command == "token":
        return _run_token(args)
    if args.command == "config":
        return _run_config()
    if args.command == "serve":
        return _run_serve(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
