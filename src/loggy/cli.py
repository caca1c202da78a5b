#!/usr/bin/env python3
"""
Command line tool for loggy.

Usage:
    loggy send --app my-app "Deploy finished" --level success --field version=1.2.0
    loggy send --app my-app --remote http://collector:1065/ "Disk full" --level crit
    loggy serve --port 1065
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from colorama import Fore, Style, just_fix_windows_console

from .collector import DEFAULT_PORT
from .config import ConfigError, LoggyConfig
from .levels import Level
from .logger import Loggy


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def parse_field(raw: str) -> tuple[str, Any]:
    """Parse ``key=value``; values that are valid JSON are decoded."""
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"Expected key=value, got {raw!r}")
    key, value = raw.split("=", 1)
    try:
        return key, json.loads(value)
    except json.JSONDecodeError:
        return key, value


def load_config(args) -> LoggyConfig:
    config = LoggyConfig.from_yaml(args.config) if args.config else LoggyConfig()
    if getattr(args, "remote", None):
        config.remote = args.remote
    return config


def cmd_send(args) -> int:
    """Send a single event and wait for delivery."""
    config = load_config(args)
    # One event, delivered right away; never terminate the CLI on fatal levels
    config.throttle_interval = 0
    config.exit_on_fatal = False
    config.print_to_console = not args.quiet

    fields = dict(args.field or [])
    with Loggy.from_config(args.app, config) as log:
        log.log(args.message, {"level": args.level, **fields})
    stats = log.sender.stats

    if stats["dropped"]:
        print(colorize(f"Failed to deliver event to {log.sender.url}", Fore.RED), file=sys.stderr)
        return 1
    return 0


def cmd_serve(args) -> int:
    """Run the development collector."""
    import uvicorn

    from .collector import create_app

    print(colorize(f"Collector listening on http://{args.host}:{args.port}/", Style.BRIGHT))
    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loggy", description="Structured event logging client")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send one event")
    send.add_argument("message", help="Event message")
    send.add_argument("--app", required=True, help="Application identifier")
    send.add_argument("--remote", help="Collector URL")
    send.add_argument("--level", default=Level.INFO.value, choices=[level.value for level in Level])
    send.add_argument("--field", "-f", action="append", type=parse_field, help="Extra field key=value")
    send.add_argument("--quiet", "-q", action="store_true", help="Do not echo the event")
    send.set_defaults(func=cmd_send)

    serve = subparsers.add_parser("serve", help="Run the development collector")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=DEFAULT_PORT)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    just_fix_windows_console()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except ConfigError as e:
        print(colorize(f"Config error: {e}", Fore.RED), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
