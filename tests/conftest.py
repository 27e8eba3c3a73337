from __future__ import annotations

import os
import sys
import time
from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

if sys.platform == "win32":  # pragma: no cover - POSIX only
    collect_ignore_glob = ["test_*.py"]


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def pty_pair():
    master, slave = os.openpty()
    try:
        yield master, slave
    finally:
        for fd in (master, slave):
            try:
                os.close(fd)
            except OSError:
                pass


@pytest.fixture
def pty_terminal(monkeypatch, pty_pair):
    """Point the controller's terminal lookup at a fresh pseudo-terminal."""

    from quitguard.core import controller as controller_module

    _, slave = pty_pair
    opened: list[int] = []

    def fake_open() -> int:
        fd = os.dup(slave)
        opened.append(fd)
        return fd

    monkeypatch.setattr(controller_module, "open_controlling_terminal", fake_open)
    return slave, opened


@pytest.fixture
def no_terminal(monkeypatch):
    from quitguard.core import controller as controller_module

    monkeypatch.setattr(controller_module, "open_controlling_terminal", lambda: None)


@pytest.fixture
def fresh_singleton(monkeypatch):
    from quitguard.core import controller as controller_module

    monkeypatch.setattr(controller_module, "_CONTROLLER", None)
    yield
    instance = controller_module._CONTROLLER
    if instance is not None:
        instance.close()
