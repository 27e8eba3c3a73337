"""Exception types raised while setting up quit detection."""

from __future__ import annotations

import os


class QuitGuardError(Exception):
    """Base class for errors raised by quitguard."""


class TerminalSetupError(QuitGuardError):
    """A fatal failure while installing the handler or touching the terminal."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        self.errno = error_number(cause)
        if cause is None:
            message = operation
        elif self.errno is not None:
            message = f"{operation}: {os.strerror(self.errno)}"
        else:
            message = f"{operation}: {cause}"
        super().__init__(message)


def error_number(exc: BaseException | None) -> int | None:
    """Return the errno carried by ``exc``.

    ``termios.error`` is not an ``OSError`` subclass; it stores the errno as
    the first positional argument instead.
    """

    if exc is None:
        return None
    if isinstance(exc, OSError):
        return exc.errno
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


__all__ = ["QuitGuardError", "TerminalSetupError", "error_number"]
