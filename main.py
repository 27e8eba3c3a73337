"""Command-line demo host for quitguard.

Waits until SIGQUIT or Ctrl+Q is received, then exits cleanly with the
terminal restored.
"""

from __future__ import annotations

import argparse
import math
import sys
import time
from typing import Sequence

from quitguard.config import load_config
from quitguard.core import get_controller, quit_byte_for, sigquit_init, sigquit_received
from quitguard.logging_utils import configure_logging


def positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be a finite number greater than 0, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quitguard-demo",
        description="Wait for SIGQUIT or the remapped Ctrl+Q keystroke.",
    )
    parser.add_argument("--config", help="Additional YAML configuration file.")
    parser.add_argument("--log-level", default=None, help="Console log level (e.g. DEBUG).")
    parser.add_argument(
        "--no-remap",
        action="store_true",
        help="Leave the terminal's control characters alone; only SIGQUIT is watched.",
    )
    parser.add_argument(
        "--poll-interval",
        type=positive_float,
        default=None,
        help="Seconds between checks of the quit flag.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        result = load_config(
            override_paths=[args.config] if args.config else None,
            include_sources=True,
        )
    except (OSError, ValueError) as exc:
        print(f"quitguard-demo: {exc}", file=sys.stderr)
        return 2
    config, sources = result.config, result.sources

    logging_config = dict(config["logging"])
    if args.log_level:
        logging_config["console_level"] = args.log_level
    logger = configure_logging(logging_config)
    logger.debug("Loaded configuration from: %s", ", ".join(sources) or "<defaults>")

    terminal_config = config["terminal"]
    remap = bool(terminal_config["remap_keystroke"]) and not args.no_remap
    if not sigquit_init(
        logger,
        remap_keystroke=remap,
        quit_byte=quit_byte_for(terminal_config["quit_key"]),
    ):
        logger.error("Quit detection is unavailable; exiting.")
        return 1

    controller = get_controller()
    key = terminal_config["quit_key"].upper()
    if controller is not None and controller.has_terminal and remap:
        logger.info("Press Ctrl+%s or send SIGQUIT to quit.", key)
    else:
        logger.info("Send SIGQUIT to quit.")

    interval = args.poll_interval
    if interval is None:
        interval = float(config["demo"]["poll_interval"])
    try:
        while not sigquit_received():
            time.sleep(interval)
    except KeyboardInterrupt:  # pragma: no cover - manual interruption
        logger.warning("Interrupted by user.")
        return 1

    logger.info("Quit requested; shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
