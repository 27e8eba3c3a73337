from __future__ import annotations

import errno
import os

import psutil

from quitguard.core import terminal
from quitguard.core.terminal import TTY_PATH, candidate_paths, open_controlling_terminal


def _no_streams(monkeypatch) -> None:
    monkeypatch.setattr(terminal.os, "isatty", lambda fd: False)


def test_prefers_dev_tty(monkeypatch) -> None:
    opened = []

    def fake_open(path, flags):
        opened.append((path, flags))
        return 42

    monkeypatch.setattr(terminal.os, "open", fake_open)

    assert open_controlling_terminal() == 42
    assert opened == [(TTY_PATH, os.O_WRONLY | os.O_NOCTTY)]


def test_returns_none_without_any_terminal(monkeypatch) -> None:
    def fake_open(path, flags):
        raise OSError(errno.ENXIO, "No such device or address")

    _no_streams(monkeypatch)
    monkeypatch.setattr(terminal, "_process_terminal", lambda: None)
    monkeypatch.setattr(terminal.os, "open", fake_open)

    assert open_controlling_terminal() is None


def test_falls_back_to_terminal_behind_standard_stream(monkeypatch, pty_pair) -> None:
    _, slave = pty_pair
    slave_path = os.ttyname(slave)
    real_open = os.open

    def fake_open(path, flags):
        if path == TTY_PATH:
            raise OSError(errno.ENXIO, "No such device or address")
        return real_open(path, flags)

    monkeypatch.setattr(terminal.os, "open", fake_open)
    monkeypatch.setattr(terminal.os, "isatty", lambda fd: fd == 2)
    monkeypatch.setattr(terminal.os, "ttyname", lambda fd: slave_path)

    fd = open_controlling_terminal()
    try:
        assert fd is not None
        assert os.fstat(fd).st_rdev == os.fstat(slave).st_rdev
    finally:
        os.close(fd)


def test_falls_back_to_psutil_terminal(monkeypatch) -> None:
    class FakeProcess:
        def terminal(self):
            return "/dev/pts/77"

    _no_streams(monkeypatch)
    monkeypatch.setattr(terminal.psutil, "Process", FakeProcess)

    assert list(candidate_paths()) == [TTY_PATH, "/dev/pts/77"]


def test_psutil_errors_are_ignored(monkeypatch) -> None:
    class FakeProcess:
        def terminal(self):
            raise psutil.AccessDenied()

    _no_streams(monkeypatch)
    monkeypatch.setattr(terminal.psutil, "Process", FakeProcess)

    assert list(candidate_paths()) == [TTY_PATH]


def test_duplicate_candidates_are_tried_once(monkeypatch) -> None:
    attempts = []

    def fake_open(path, flags):
        attempts.append(path)
        raise OSError(errno.ENOENT, "No such file or directory")

    monkeypatch.setattr(terminal.os, "open", fake_open)
    monkeypatch.setattr(terminal.os, "isatty", lambda fd: True)
    monkeypatch.setattr(terminal.os, "ttyname", lambda fd: "/dev/pts/3")
    monkeypatch.setattr(terminal, "_process_terminal", lambda: "/dev/pts/3")

    assert open_controlling_terminal() is None
    assert attempts == [TTY_PATH, "/dev/pts/3"]
