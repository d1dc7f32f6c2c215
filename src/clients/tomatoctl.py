"""`tomatoctl`: query and control a running tomato-notify daemon."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from app_config import AppConfigurationError, load_app_config
from protocol import (
    COMMAND_READY,
    COMMAND_REMIND,
    ProtocolClientError,
    query,
    query_remaining_seconds,
)

from .formatting import UNAVAILABLE_POLYBAR, UNAVAILABLE_TEXT, format_polybar


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tomatoctl", description="a tomato-notify client")
    parser.add_argument("--socket", help="control socket path (defaults to config)")
    parser.add_argument("--config", help="path to config.toml")
    subcommands = parser.add_subparsers(dest="command")

    status = subcommands.add_parser("status", help="get clock status")
    status.add_argument("--polybar", action="store_true", help="use polybar style output")

    subcommands.add_parser("ready", help="send ready action")
    subcommands.add_parser("remind", help="send remind action")
    return parser


def resolve_socket_path(args: argparse.Namespace) -> str:
    if args.socket:
        return args.socket
    return load_app_config(args.config).protocol.socket_path


def print_status(socket_path: str, *, polybar: bool) -> int:
    try:
        seconds = query_remaining_seconds(socket_path)
    except ProtocolClientError as error:
        print(UNAVAILABLE_POLYBAR if polybar else UNAVAILABLE_TEXT)
        print(error, file=sys.stderr)
        return 1
    print(format_polybar(seconds) if polybar else seconds)
    return 0


def send_action(socket_path: str, command: str) -> int:
    try:
        query(socket_path, command)
    except ProtocolClientError as error:
        print(error, file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        socket_path = resolve_socket_path(args)
    except AppConfigurationError as error:
        print(f"Configuration error: {error}", file=sys.stderr)
        return 1

    if args.command == "ready":
        return send_action(socket_path, COMMAND_READY)
    if args.command == "remind":
        return send_action(socket_path, COMMAND_REMIND)
    return print_status(socket_path, polybar=args.command == "status" and args.polybar)


if __name__ == "__main__":
    raise SystemExit(main())
