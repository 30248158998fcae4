"""Process handle for a spawned job executable.

The handle owns exactly one child process. If it is garbage collected (or the
interpreter exits) while the child is still alive, the child and any of its
descendants are killed, so a dropped handle never leaves orphans behind.
"""

from __future__ import annotations

import os
import subprocess
import sys
import time
import weakref
from pathlib import Path
from typing import NamedTuple

import psutil
from loguru import logger

from jobdispatch.errors import SpawnError, WaitError
from jobdispatch.models import KILL_TIMEOUT


class ExitOutcome(NamedTuple):
    """How a process ended. ``code`` is None if it was terminated by a signal."""

    code: int | None

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitOutcome":
        # Popen reports death by signal N as -N on POSIX
        if sys.platform != "win32" and returncode < 0:
            return cls(code=None)
        return cls(code=returncode)


def _reap(process: subprocess.Popen[bytes], block: bool) -> int | None:
    """Collect the exit status of ``process`` and store it as its returncode.

    Popen turns ECHILD into a return code of 0, which would report a child
    reaped by someone else as a success. On POSIX the status is collected
    with waitpid directly so that case raises WaitError instead.
    """
    if process.returncode is not None:
        return process.returncode

    try:
        if sys.platform == "win32":
            return process.wait() if block else process.poll()
        pid, status = os.waitpid(process.pid, 0 if block else os.WNOHANG)
    except ChildProcessError as e:
        raise WaitError(process.pid, "no such child (already reaped elsewhere)") from e
    except OSError as e:
        raise WaitError(process.pid, str(e)) from e

    if pid == 0:
        return None
    process.returncode = os.waitstatus_to_exitcode(status)
    return process.returncode


def _kill_tree(process: subprocess.Popen[bytes], timeout: float) -> None:
    """Kill a process and its descendants, then reap it."""
    if _reap(process, block=False) is not None:
        return

    try:
        children = psutil.Process(process.pid).children(recursive=True)
    except psutil.NoSuchProcess:
        children = []

    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass

    try:
        process.kill()
    except ProcessLookupError:
        pass

    deadline = time.monotonic() + timeout
    while _reap(process, block=False) is None:
        if time.monotonic() >= deadline:
            logger.warning(f"Process {process.pid} did not exit {timeout}s after kill")
            break
        time.sleep(0.01)
    psutil.wait_procs(children, timeout=timeout)


def _kill_on_drop(process: subprocess.Popen[bytes], timeout: float) -> None:
    try:
        if _reap(process, block=False) is None:
            logger.warning(f"Killing process {process.pid} left running by a dropped handle")
            _kill_tree(process, timeout)
    except WaitError as e:
        logger.warning(f"Could not clean up dropped process: {e}")


class ProcessHandle:
    """Handle to a running process."""

    def __init__(self, process: subprocess.Popen[bytes], kill_timeout: float = KILL_TIMEOUT):
        self.process = process
        self.kill_timeout = kill_timeout
        self._finalizer = weakref.finalize(self, _kill_on_drop, process, kill_timeout)

    @property
    def pid(self) -> int:
        """Get the process ID."""
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        """Get the return code if process has exited."""
        return self.process.returncode

    def is_running(self) -> bool:
        """Check if the process is still running."""
        return _reap(self.process, block=False) is None

    def wait(self) -> ExitOutcome:
        """Block until the process exits."""
        return ExitOutcome.from_returncode(_reap(self.process, block=True))

    def try_wait(self) -> ExitOutcome | None:
        """Return the outcome if the process has exited, without blocking."""
        returncode = _reap(self.process, block=False)
        if returncode is None:
            return None
        return ExitOutcome.from_returncode(returncode)

    def kill(self) -> ExitOutcome:
        """Kill the process and its descendants, and return how it ended."""
        _kill_tree(self.process, self.kill_timeout)
        if self.process.returncode is None:
            raise WaitError(self.pid, "process survived kill")
        return ExitOutcome.from_returncode(self.process.returncode)

    def release(self) -> None:
        """Detach the kill-on-drop guard once the process has been reaped."""
        self._finalizer.detach()


def spawn(path: str | Path, kill_timeout: float = KILL_TIMEOUT) -> ProcessHandle:
    """Spawn ``path`` with no arguments and all standard streams discarded.

    Raises:
        SpawnError: if the OS refuses to create the process
    """
    path = Path(path)
    try:
        process = subprocess.Popen(
            [str(path)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=sys.platform != "win32",
        )
    except OSError as e:
        raise SpawnError(path, e.strerror or str(e)) from e

    logger.debug(f"Spawned '{path}' (PID: {process.pid})")
    return ProcessHandle(process, kill_timeout=kill_timeout)
