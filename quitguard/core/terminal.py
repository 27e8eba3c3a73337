"""Locate the controlling terminal, even when stdio is redirected."""

from __future__ import annotations

import logging
import os
from typing import Iterator

import psutil

TTY_PATH = "/dev/tty"

# Write access is enough for tcgetattr/tcsetattr; O_NOCTTY keeps us from
# acquiring a terminal we were not already attached to.
_OPEN_FLAGS = os.O_WRONLY | os.O_NOCTTY

_STANDARD_STREAMS = (2, 1, 0)

logger = logging.getLogger(__name__)


def _stream_terminal(fd: int) -> str | None:
    try:
        if not os.isatty(fd):
            return None
        return os.ttyname(fd)
    except OSError:
        return None


def _process_terminal() -> str | None:
    try:
        return psutil.Process().terminal()
    except (psutil.Error, AttributeError, NotImplementedError):
        return None


def candidate_paths() -> Iterator[str]:
    """Yield device paths that may name the controlling terminal, best first."""

    yield TTY_PATH
    for fd in _STANDARD_STREAMS:
        path = _stream_terminal(fd)
        if path:
            yield path
    # Containers and chroots sometimes lack the /dev/tty node while the
    # process still has a controlling terminal.
    path = _process_terminal()
    if path:
        yield path


def open_controlling_terminal() -> int | None:
    """Return a descriptor on the controlling terminal, or ``None``.

    Having no terminal is normal (cron jobs, daemons, CI runners), so this
    never raises; every failed attempt is logged at debug level and the next
    candidate is tried.
    """

    seen: set[str] = set()
    for path in candidate_paths():
        if path in seen:
            continue
        seen.add(path)
        try:
            fd = os.open(path, _OPEN_FLAGS)
        except OSError as exc:
            logger.debug("Cannot open terminal %s: %s", path, exc)
            continue
        logger.debug("Using terminal %s (fd %d)", path, fd)
        return fd
    return None


__all__ = ["TTY_PATH", "candidate_paths", "open_controlling_terminal"]
