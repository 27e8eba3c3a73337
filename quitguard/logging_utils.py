"""Logging setup for quitguard hosts.

Library modules log to children of the ``quitguard`` logger (for example
``quitguard.core.terminal``) and never attach handlers themselves. A host calls
:func:`configure_logging` to add a console handler and, when ``log_dir`` is
set, a rotating log file. Calling it again swaps only the handlers it added;
handlers the host attached on its own are left alone.
"""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Mapping

LOGGER_NAME = "quitguard"
LOG_FILENAME = "quitguard.log"

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"

_installed: List[logging.Handler] = []


class ConsoleHandler(logging.StreamHandler):
    """Stream handler that colours by level when its own stream is a tty."""

    def __init__(self, stream=None, *, color: bool = True) -> None:
        super().__init__(stream)
        self.color = color
        self.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    def stream_is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        if isatty is None:
            return False
        try:
            return bool(isatty())
        except ValueError:  # closed stream
            return False

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno)
        if color and self.color and self.stream_is_tty():
            return f"{color}{message}{_RESET}"
        return message


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def resolve_level(value: object, default: int) -> int:
    """Turn ``"debug"``, ``"WARNING"`` or ``10`` into a level number."""

    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return default


def _file_handler(log_dir: Path, config: Mapping[str, object]) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / LOG_FILENAME,
        maxBytes=1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(resolve_level(config.get("file_level"), logging.DEBUG))
    if config.get("json_logs"):
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def configure_logging(config: Mapping[str, object]) -> logging.Logger:
    """Attach console and optional file output to the ``quitguard`` logger."""

    logger = logging.getLogger(LOGGER_NAME)
    while _installed:
        handler = _installed.pop()
        logger.removeHandler(handler)
        handler.close()

    console = ConsoleHandler(color=bool(config.get("color", True)))
    console.setLevel(resolve_level(config.get("console_level"), logging.INFO))
    _installed.append(console)

    log_dir = config.get("log_dir")
    if log_dir:
        _installed.append(_file_handler(Path(str(log_dir)), config))

    for handler in _installed:
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger


__all__ = [
    "LOGGER_NAME",
    "ConsoleHandler",
    "JsonLineFormatter",
    "configure_logging",
    "resolve_level",
]
