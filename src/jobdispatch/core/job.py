"""Job: one named executable and the lifecycle of its process."""

from __future__ import annotations

import asyncio
from pathlib import Path

from loguru import logger

from jobdispatch.core.handle import ExitOutcome, ProcessHandle, spawn
from jobdispatch.errors import JobStateError, NotRunningError, SpawnError
from jobdispatch.models import (
    DEFAULT_POLL_INTERVAL,
    KILL_TIMEOUT,
    Running,
    Standby,
    Status,
    StatusKind,
    classify_exit,
)


class Job:
    """A named executable and the status of its single process run.

    Status only moves forward: Standby -> Running -> Exit | Error. The live
    process handle is owned by the job while Running and dropped as soon as
    a terminal status is recorded.

    Example:
        job = Job("backup", "/usr/local/bin/backup")
        job.start()
        job.wait()
        print(job.get_status())  # Exit(0)
    """

    def __init__(self, name: str, path: str | Path, kill_timeout: float = KILL_TIMEOUT):
        self._name = name
        self._path = Path(path)
        self._status: Status = Standby()
        self._handle: ProcessHandle | None = None
        self._kill_timeout = kill_timeout

    def __repr__(self) -> str:
        return f"Job(name={self._name!r}, path={str(self._path)!r}, status={self._status})"

    def __enter__(self) -> "Job":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # Accessors

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        return self._path

    @property
    def status(self) -> Status:
        return self._status

    @property
    def pid(self) -> int | None:
        """PID of the live process, or None unless Running."""
        return self._handle.pid if self._handle else None

    def get_name(self) -> str:
        """Return the name of the job."""
        return self._name

    def get_path(self) -> Path:
        """Return the path of the executable."""
        return self._path

    def get_status(self) -> Status:
        """Return the current status of the job."""
        return self._status

    def is_running(self) -> bool:
        return self._status.kind == StatusKind.RUNNING

    # Lifecycle

    def start(self) -> None:
        """Spawn the executable and move to Running.

        Raises:
            JobStateError: if the job is not in Standby
            SpawnError: if the process could not be created (status stays Standby)
        """
        if self._status.kind != StatusKind.STANDBY:
            raise JobStateError(
                f"Job '{self._name}' can only be started from Standby (status: {self._status})"
            )

        try:
            handle = spawn(self._path, kill_timeout=self._kill_timeout)
        except SpawnError as e:
            logger.error(f"Failed to start job '{self._name}': {e}")
            raise

        self._handle = handle
        self._status = Running(pid=handle.pid)
        logger.info(f"Started job '{self._name}' (PID: {handle.pid})")

    def wait(self) -> None:
        """Block until the process exits and record its terminal status.

        Returning normally means waiting succeeded, not that the job did:
        check ``get_status()`` for Exit or Error.

        Raises:
            NotRunningError: if the job is not Running (``code == -1``)
            WaitError: if the OS could not report the process termination
        """
        handle = self._require_handle()
        self._finish(handle.wait())

    def poll(self) -> bool:
        """Check without blocking whether the job has finished.

        Returns:
            True if a terminal status is recorded, False if still running

        Raises:
            NotRunningError: if the job was never started
            WaitError: if the OS could not report the process termination
        """
        if self._status.kind == StatusKind.STANDBY:
            raise NotRunningError(self._name, self._status)
        if self._handle is None:
            return True

        outcome = self._handle.try_wait()
        if outcome is None:
            return False
        self._finish(outcome)
        return True

    async def wait_async(self, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        """Suspend the calling coroutine until the process exits.

        Same contract as ``wait``. Does not block the event loop, so several
        jobs can be awaited together with ``asyncio.gather``.
        """
        self._require_handle()
        while not self.poll():
            await asyncio.sleep(poll_interval)

    def kill(self) -> None:
        """Kill the running process and record how it ended.

        Raises:
            NotRunningError: if the job is not Running
        """
        handle = self._require_handle()
        logger.info(f"Killing job '{self._name}' (PID: {handle.pid})")
        self._finish(handle.kill())

    def close(self) -> None:
        """Release the job, killing its process if it is still running."""
        if self._handle is not None:
            self.kill()

    def _require_handle(self) -> ProcessHandle:
        if self._handle is None:
            raise NotRunningError(self._name, self._status)
        return self._handle

    def _finish(self, outcome: ExitOutcome) -> None:
        self._status = classify_exit(outcome.code)
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.release()
        logger.info(f"Job '{self._name}' finished: {self._status}")
