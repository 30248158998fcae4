"""jobdispatch - run external executables as typed, observable jobs."""

from jobdispatch.core.job import Job
from jobdispatch.errors import (
    NOT_RUNNING,
    JobError,
    JobStateError,
    NotRunningError,
    SpawnError,
    WaitError,
)
from jobdispatch.models import Error, Exit, Running, Standby, Status, StatusKind

__version__ = "0.1.0"

__all__ = [
    "Error",
    "Exit",
    "Job",
    "JobError",
    "JobStateError",
    "NOT_RUNNING",
    "NotRunningError",
    "Running",
    "SpawnError",
    "Standby",
    "Status",
    "StatusKind",
    "WaitError",
    "__version__",
]
