"""Core runtime components for quitguard."""

from .attributes import (
    QUIT_BYTE,
    TerminalSnapshot,
    capture_snapshot,
    quit_byte_for,
    remap_quit_character,
)
from .controller import (
    ControllerState,
    QuitController,
    QuitFlag,
    get_controller,
    sigquit_init,
    sigquit_received,
)
from .nostop import tcsetattr_nostop
from .terminal import open_controlling_terminal

__all__ = [
    "QUIT_BYTE",
    "ControllerState",
    "QuitController",
    "QuitFlag",
    "TerminalSnapshot",
    "capture_snapshot",
    "get_controller",
    "open_controlling_terminal",
    "quit_byte_for",
    "remap_quit_character",
    "sigquit_init",
    "sigquit_received",
    "tcsetattr_nostop",
]
