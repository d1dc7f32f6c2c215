import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from app_config import AppConfigurationError, load_app_config
from runtime import run_daemon


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("tomato_notify")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tomato-notify",
        description="Pomodoro cycle daemon with a Unix socket control protocol.",
    )
    parser.add_argument("--config", help="path to config.toml")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pomodoro daemon until SIGINT/SIGTERM."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        app_config = load_app_config(args.config)
    except AppConfigurationError as error:
        logger.error(f"App configuration error: {error}")
        return 1

    if app_config.source_file:
        logger.info("Loaded runtime config: %s", app_config.source_file)
    else:
        logger.info("No config file found, using built-in defaults")

    try:
        return asyncio.run(run_daemon(app_config))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by keyboard interrupt.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
