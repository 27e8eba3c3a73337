"""Terminal attribute snapshots and the quit-character remapping."""

from __future__ import annotations

import errno
import os
import sys
import termios
from dataclasses import dataclass
from typing import Any, List, Tuple

from ..errors import TerminalSetupError, error_number

# Ctrl+Q
QUIT_BYTE = ord("q") & 0x1F

# Errors some platforms report from tcgetattr on descriptors that turn out
# not to be terminals after all.
BENIGN_TCGETATTR_ERRNOS = frozenset(
    {errno.ENOTTY, errno.ENXIO, errno.EBADF, errno.EINVAL, errno.ENODEV}
)


@dataclass(frozen=True)
class TerminalSnapshot:
    """Immutable copy of the list returned by ``termios.tcgetattr``."""

    iflag: int
    oflag: int
    cflag: int
    lflag: int
    ispeed: int
    ospeed: int
    cc: Tuple[Any, ...]

    @classmethod
    def from_attributes(cls, attributes: List[Any]) -> "TerminalSnapshot":
        iflag, oflag, cflag, lflag, ispeed, ospeed, cc = attributes
        return cls(iflag, oflag, cflag, lflag, ispeed, ospeed, tuple(cc))

    def to_attributes(self) -> List[Any]:
        """Return a fresh list suitable for ``termios.tcsetattr``."""

        return [
            self.iflag,
            self.oflag,
            self.cflag,
            self.lflag,
            self.ispeed,
            self.ospeed,
            list(self.cc),
        ]


def capture_snapshot(fd: int) -> TerminalSnapshot | None:
    """Read the current attributes of ``fd``.

    Returns ``None`` when the descriptor is not really a terminal, and raises
    :class:`TerminalSetupError` for any other failure.
    """

    try:
        attributes = termios.tcgetattr(fd)
    except termios.error as exc:
        if error_number(exc) in BENIGN_TCGETATTR_ERRNOS:
            return None
        raise TerminalSetupError("tcgetattr", exc) from exc
    return TerminalSnapshot.from_attributes(attributes)


def posix_vdisable(fd: int) -> int:
    """Return the byte that disables a control character on ``fd``."""

    try:
        value = os.fpathconf(fd, "PC_VDISABLE")
    except (OSError, ValueError):
        value = -1
    if value is None or value < 0:
        return 0x00 if sys.platform.startswith("linux") else 0xFF
    return value


def _cc_byte(entry: Any) -> int | None:
    if isinstance(entry, (bytes, bytearray)) and len(entry) == 1:
        return entry[0]
    return None


def remap_quit_character(
    snapshot: TerminalSnapshot,
    *,
    quit_byte: int = QUIT_BYTE,
    vdisable: int = 0x00,
) -> List[Any]:
    """Return attributes in which ``quit_byte`` raises SIGQUIT.

    Every control function currently bound to ``quit_byte`` (with the default
    byte that is usually VSTART) is disabled outright rather than moved, and
    VQUIT is then bound to the byte. Integer slots hold the VMIN/VTIME counts
    of non-canonical mode, not characters, and are left untouched. The
    snapshot itself is not modified.
    """

    attributes = snapshot.to_attributes()
    cc = attributes[6]
    for index, entry in enumerate(cc):
        if _cc_byte(entry) == quit_byte:
            cc[index] = bytes([vdisable])
    cc[termios.VQUIT] = bytes([quit_byte])
    return attributes


def quit_byte_for(key: str) -> int:
    """Return the control byte produced by Ctrl+``key``."""

    if len(key) != 1 or not key.isascii() or not key.isalpha():
        raise ValueError(f"Quit key must be a single ASCII letter, got {key!r}")
    return ord(key.lower()) & 0x1F


__all__ = [
    "BENIGN_TCGETATTR_ERRNOS",
    "QUIT_BYTE",
    "TerminalSnapshot",
    "capture_snapshot",
    "posix_vdisable",
    "quit_byte_for",
    "remap_quit_character",
]
