"""Detect SIGQUIT or Ctrl+Q and put the terminal back the way it was on exit."""

from .core import (
    ControllerState,
    QuitController,
    get_controller,
    sigquit_init,
    sigquit_received,
)
from .errors import QuitGuardError, TerminalSetupError

__version__ = "0.1.0"

__all__ = [
    "ControllerState",
    "QuitController",
    "QuitGuardError",
    "TerminalSetupError",
    "get_controller",
    "sigquit_init",
    "sigquit_received",
]
