"""End-to-end checks against a real pseudo-terminal in a child interpreter."""

from __future__ import annotations

import os
import select
import signal
import subprocess
import sys
import termios
import time
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

pytestmark = pytest.mark.skipif(
    not sys.platform.startswith("linux"), reason="pty job control semantics are Linux specific"
)

# Becomes session leader (start_new_session) and takes stdin as its
# controlling terminal before initializing.
TERMINAL_CHILD = """
import fcntl, sys, termios, time
fcntl.ioctl(0, termios.TIOCSCTTY, 0)
from quitguard import get_controller, sigquit_init, sigquit_received
if not sigquit_init():
    print("FAILED", flush=True)
    sys.exit(2)
print("READY" if get_controller().has_terminal else "NOTERM", flush=True)
deadline = time.monotonic() + 10
while not sigquit_received() and time.monotonic() < deadline:
    time.sleep(0.01)
print("QUIT" if sigquit_received() else "TIMEOUT", flush=True)
"""

REDIRECTED_CHILD = """
from quitguard import get_controller, sigquit_init, sigquit_received
ok = sigquit_init()
controller = get_controller()
print(ok, controller.state.value, sigquit_received())
"""


def _child_env() -> dict:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))
    return env


def _read_until(fd: int, token: bytes, timeout: float = 10.0) -> bytes:
    buffer = b""
    deadline = time.monotonic() + timeout
    while token not in buffer:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        ready, _, _ = select.select([fd], [], [], remaining)
        if not ready:
            continue
        try:
            chunk = os.read(fd, 1024)
        except OSError:
            break
        if not chunk:
            break
        buffer += chunk
    return buffer


@pytest.fixture
def terminal_child(pty_pair):
    master, slave = pty_pair
    before = termios.tcgetattr(slave)
    proc = subprocess.Popen(
        [sys.executable, "-c", TERMINAL_CHILD],
        stdin=slave,
        stdout=slave,
        stderr=slave,
        start_new_session=True,
        env=_child_env(),
    )
    try:
        output = _read_until(master, b"READY")
        assert b"READY" in output, output
        yield proc, master, slave, before
    finally:
        if proc.poll() is None:
            proc.kill()
        proc.wait(timeout=10)


def test_ctrl_q_requests_quit_and_exit_restores_terminal(terminal_child) -> None:
    proc, master, slave, before = terminal_child

    live = termios.tcgetattr(slave)
    assert live[6][termios.VQUIT] == b"\x11"
    assert live[6][termios.VSTART] != b"\x11"

    os.write(master, b"\x11")

    assert b"QUIT" in _read_until(master, b"QUIT")
    assert proc.wait(timeout=10) == 0
    assert termios.tcgetattr(slave) == before


def test_sigquit_requests_quit(terminal_child) -> None:
    proc, master, slave, before = terminal_child

    proc.send_signal(signal.SIGQUIT)

    assert b"QUIT" in _read_until(master, b"QUIT")
    assert proc.wait(timeout=10) == 0
    assert termios.tcgetattr(slave) == before


def test_redirected_streams_without_terminal(tmp_path) -> None:
    out_path = tmp_path / "stdout.txt"
    err_path = tmp_path / "stderr.txt"
    with out_path.open("wb") as out, err_path.open("wb") as err:
        result = subprocess.run(
            [sys.executable, "-c", REDIRECTED_CHILD],
            stdin=subprocess.DEVNULL,
            stdout=out,
            stderr=err,
            start_new_session=True,
            env=_child_env(),
            timeout=30,
        )

    assert result.returncode == 0, err_path.read_text(encoding="utf-8")
    assert out_path.read_text(encoding="utf-8").split() == ["True", "active-no-terminal", "False"]
