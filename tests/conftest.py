"""Shared fixtures: small shell-script executables built in a temp dir."""

import signal
import stat
import sys
import time
from pathlib import Path

import psutil
import pytest

requires_posix = pytest.mark.skipif(
    sys.platform == "win32", reason="uses /bin/sh scripts and POSIX signals"
)


def is_alive(proc: psutil.Process) -> bool:
    """Check if a process exists and is not a zombie."""
    try:
        return proc.is_running() and proc.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False


def wait_until_gone(procs: list[psutil.Process], timeout: float = 5.0) -> list[psutil.Process]:
    """Poll until none of ``procs`` is alive; return the survivors."""
    deadline = time.monotonic() + timeout
    alive = [p for p in procs if is_alive(p)]
    while alive and time.monotonic() < deadline:
        time.sleep(0.05)
        alive = [p for p in alive if is_alive(p)]
    return alive


@pytest.fixture
def make_script(tmp_path):
    """Factory for executable /bin/sh scripts."""

    def _make(name: str, body: str, executable: bool = True) -> Path:
        path = tmp_path / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        if executable:
            path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def exit_zero(make_script):
    return make_script("exit_zero.sh", "exit 0")


@pytest.fixture
def exit_seven(make_script):
    return make_script("exit_seven.sh", "exit 7")


@pytest.fixture
def sleeper(make_script):
    """A script that replaces itself with a long sleep."""
    return make_script("sleeper.sh", "exec sleep 60")


@pytest.fixture
def self_killer(make_script):
    """A script that dies from SIGKILL, so it has no exit code."""
    return make_script("self_killer.sh", "kill -KILL $$")


@pytest.fixture
def ignore_sigchld():
    """Ignore SIGCHLD for the duration of a test, so exited children are auto-reaped."""
    previous = signal.signal(signal.SIGCHLD, signal.SIG_IGN)
    yield
    signal.signal(signal.SIGCHLD, previous)
