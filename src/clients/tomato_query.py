"""`tomato-query`: minimal flag-based client printing the raw daemon answer."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from app_config import AppConfigurationError, load_app_config
from protocol import (
    COMMAND_GET_INFO,
    COMMAND_READY,
    COMMAND_REMIND,
    ProtocolClientError,
    query,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tomato-query")
    parser.add_argument("--socket", help="control socket path (defaults to config)")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--get-info",
        dest="command",
        action="store_const",
        const=COMMAND_GET_INFO,
    )
    group.add_argument("--ready", dest="command", action="store_const", const=COMMAND_READY)
    group.add_argument("--remind", dest="command", action="store_const", const=COMMAND_REMIND)
    parser.set_defaults(command=COMMAND_GET_INFO)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        socket_path = args.socket or load_app_config().protocol.socket_path
    except AppConfigurationError as error:
        print(f"Configuration error: {error}", file=sys.stderr)
        return 1

    try:
        print(query(socket_path, args.command))
    except ProtocolClientError as error:
        print(error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
