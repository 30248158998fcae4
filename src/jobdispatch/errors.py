"""Exceptions raised by jobdispatch."""

from __future__ import annotations

from pathlib import Path

# Failure code reported when a job is asked to wait while not running
NOT_RUNNING = -1


class JobError(Exception):
    """Base class for job lifecycle errors."""

    pass


class SpawnError(JobError):
    """The executable could not be spawned."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to spawn '{self.path}': {reason}")


class JobStateError(JobError):
    """An operation was called in a state where it is not allowed."""

    pass


class NotRunningError(JobStateError):
    """The job has no live process (never started, or already finished)."""

    code = NOT_RUNNING

    def __init__(self, name: str, status: object):
        self.name = name
        self.status = status
        super().__init__(f"Job '{name}' is not running (status: {status})")


class WaitError(JobError):
    """The OS failed to report the termination of a child process."""

    def __init__(self, pid: int, reason: str):
        self.pid = pid
        self.reason = reason
        super().__init__(f"Failed to wait on process {pid}: {reason}")
