"""jobdispatch core components."""

from jobdispatch.core.handle import ExitOutcome, ProcessHandle, spawn
from jobdispatch.core.job import Job

__all__ = [
    "ExitOutcome",
    "Job",
    "ProcessHandle",
    "spawn",
]
