"""Apply terminal attributes without being stopped by SIGTTOU."""

from __future__ import annotations

import signal
import termios
from typing import Any, Sequence


def tcsetattr_nostop(fd: int, when: int, attributes: Sequence[Any]) -> None:
    """Call ``termios.tcsetattr`` with SIGTTOU ignored.

    A process in a background process group that changes the attributes of
    its controlling terminal is sent SIGTTOU, which stops it by default.
    Ignoring the signal for the duration of the call lets the change go
    through. The previous disposition is put back before returning, also when
    ``tcsetattr`` raises.
    """

    previous = signal.signal(signal.SIGTTOU, signal.SIG_IGN)
    try:
        termios.tcsetattr(fd, when, list(attributes))
    finally:
        # None means the disposition was not set from Python.
        signal.signal(signal.SIGTTOU, previous if previous is not None else signal.SIG_DFL)


__all__ = ["tcsetattr_nostop"]
