"""SIGQUIT / Ctrl+Q quit detection with exit-time terminal restore."""

from __future__ import annotations

import atexit
import enum
import logging
import os
import signal
import termios
from typing import Any

from ..errors import TerminalSetupError
from .attributes import (
    QUIT_BYTE,
    TerminalSnapshot,
    capture_snapshot,
    posix_vdisable,
    remap_quit_character,
)
from .nostop import tcsetattr_nostop
from .terminal import open_controlling_terminal


class ControllerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    ACTIVE_WITH_TERMINAL = "active-with-terminal"
    ACTIVE_NO_TERMINAL = "active-no-terminal"
    FAILED = "failed"
    TERMINATING = "terminating"
    EXITED = "exited"


_ACTIVE_STATES = (ControllerState.ACTIVE_WITH_TERMINAL, ControllerState.ACTIVE_NO_TERMINAL)


class QuitFlag:
    """A boolean that only ever goes from ``False`` to ``True``.

    ``set`` is called from the signal handler, so it is a single attribute
    store: no lock, no logging, no I/O.
    """

    __slots__ = ("_set",)

    def __init__(self) -> None:
        self._set = False

    def set(self) -> None:
        self._set = True

    def is_set(self) -> bool:
        return self._set

    def __bool__(self) -> bool:
        return self._set


class QuitController:
    """Owns the SIGQUIT handler, the terminal descriptor and its snapshot.

    Construct one per process and keep it alive. :meth:`initialize` installs
    the handler and, when a controlling terminal exists, snapshots its
    attributes, registers the restore with :mod:`atexit` and binds Ctrl+Q to
    VQUIT. The restore runs once: at interpreter exit, or earlier through
    :meth:`close` or by leaving a ``with`` block.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger | None = None,
        remap_keystroke: bool = True,
        quit_byte: int = QUIT_BYTE,
    ) -> None:
        self.logger = logger or logging.getLogger("quitguard")
        self.remap_keystroke = remap_keystroke
        self.quit_byte = quit_byte
        self._flag = QuitFlag()
        self._state = ControllerState.UNINITIALIZED
        self._fd: int | None = None
        self._snapshot: TerminalSnapshot | None = None
        self._previous_handler: Any = None
        self._handler_installed = False
        self._restore_registered = False
        self._restored = False

    # ------------------------------------------------------------------
    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def quit_requested(self) -> bool:
        return self._flag.is_set()

    @property
    def has_terminal(self) -> bool:
        return self._state is ControllerState.ACTIVE_WITH_TERMINAL

    @property
    def snapshot(self) -> TerminalSnapshot | None:
        return self._snapshot

    # ------------------------------------------------------------------
    def initialize(self) -> bool:
        """Start watching for quit requests; return ``False`` on fatal setup errors."""

        if self._state is not ControllerState.UNINITIALIZED:
            raise RuntimeError("QuitController can only be initialized once")
        self._state = ControllerState.INITIALIZING

        try:
            self._install_handler()
            self._attach_terminal()
        except TerminalSetupError as exc:
            self.logger.error("Quit detection setup failed: %s", exc)
            self._rollback()
            self._state = ControllerState.FAILED
            return False

        if self._snapshot is not None:
            self._state = ControllerState.ACTIVE_WITH_TERMINAL
        else:
            self._state = ControllerState.ACTIVE_NO_TERMINAL
        return True

    def close(self) -> None:
        """Restore the terminal now instead of at interpreter exit."""

        if self._state not in _ACTIVE_STATES:
            return
        self._state = ControllerState.TERMINATING
        self._unregister_restore()
        self._restore_terminal()
        self._uninstall_handler()
        self._state = ControllerState.EXITED

    def __enter__(self) -> "QuitController":
        if self._state is ControllerState.UNINITIALIZED:
            self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _handle_sigquit(self, signum, frame) -> None:
        self._flag.set()

    def _install_handler(self) -> None:
        try:
            self._previous_handler = signal.signal(signal.SIGQUIT, self._handle_sigquit)
        except (OSError, ValueError) as exc:
            raise TerminalSetupError("sigaction(SIGQUIT)", exc) from exc
        self._handler_installed = True

    def _uninstall_handler(self) -> None:
        if not self._handler_installed:
            return
        previous = self._previous_handler
        try:
            signal.signal(signal.SIGQUIT, previous if previous is not None else signal.SIG_DFL)
        except (OSError, ValueError) as exc:
            self.logger.debug("Unable to restore previous SIGQUIT handler: %s", exc)
        self._handler_installed = False

    def _attach_terminal(self) -> None:
        fd = open_controlling_terminal()
        if fd is None:
            # Normal for cron jobs and daemons; Ctrl+Q simply will not work.
            self.logger.debug("No controlling terminal; quit keystroke unavailable.")
            return
        self._fd = fd

        snapshot = capture_snapshot(fd)
        if snapshot is None:
            self.logger.debug("Descriptor %d is not a terminal; quit keystroke unavailable.", fd)
            self._close_descriptor()
            return
        self._snapshot = snapshot

        # Registered before any mutation so a failure here leaves the
        # terminal untouched.
        try:
            atexit.register(self._restore_terminal)
        except Exception as exc:  # pragma: no cover - atexit.register does not fail in practice
            raise TerminalSetupError("atexit", exc) from exc
        self._restore_registered = True

        if not self.remap_keystroke:
            return

        adjusted = remap_quit_character(
            snapshot,
            quit_byte=self.quit_byte,
            vdisable=posix_vdisable(fd),
        )
        try:
            tcsetattr_nostop(fd, termios.TCSANOW, adjusted)
        except (termios.error, OSError) as exc:
            raise TerminalSetupError("tcsetattr", exc) from exc

    def _rollback(self) -> None:
        self._unregister_restore()
        if self._snapshot is not None:
            self._restore_terminal()
        else:
            self._close_descriptor()
        self._uninstall_handler()

    def _unregister_restore(self) -> None:
        if self._restore_registered:
            atexit.unregister(self._restore_terminal)
            self._restore_registered = False

    def _restore_terminal(self) -> None:
        # Runs at interpreter exit: failures are logged and otherwise
        # ignored since nothing can be done about them any more.
        if self._restored:
            return
        self._restored = True
        snapshot = self._snapshot
        try:
            if self._fd is not None and snapshot is not None:
                tcsetattr_nostop(self._fd, termios.TCSANOW, snapshot.to_attributes())
        except (termios.error, OSError, ValueError) as exc:
            self.logger.debug("Unable to restore terminal attributes: %s", exc)
        finally:
            self._close_descriptor()

    def _close_descriptor(self) -> None:
        fd, self._fd = self._fd, None
        if fd is None:
            return
        try:
            os.close(fd)
        except OSError as exc:
            self.logger.debug("Unable to close terminal descriptor %d: %s", fd, exc)


# ---------------------------------------------------------------------------
# Process-wide entry points
# ---------------------------------------------------------------------------

_CONTROLLER: QuitController | None = None


def sigquit_init(
    logger: logging.Logger | None = None,
    *,
    remap_keystroke: bool = True,
    quit_byte: int = QUIT_BYTE,
) -> bool:
    """Create and initialize the process controller; callable once."""

    global _CONTROLLER
    if _CONTROLLER is not None:
        raise RuntimeError("sigquit_init() may only be called once per process")
    _CONTROLLER = QuitController(
        logger=logger,
        remap_keystroke=remap_keystroke,
        quit_byte=quit_byte,
    )
    return _CONTROLLER.initialize()


def sigquit_received() -> bool:
    """Return ``True`` once SIGQUIT or the quit keystroke has been seen."""

    controller = _CONTROLLER
    return controller is not None and controller.quit_requested


def get_controller() -> QuitController | None:
    return _CONTROLLER


__all__ = [
    "ControllerState",
    "QuitController",
    "QuitFlag",
    "get_controller",
    "sigquit_init",
    "sigquit_received",
]
