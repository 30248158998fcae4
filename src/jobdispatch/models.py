"""Pydantic models for jobdispatch status and job definitions."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class StatusKind(str, Enum):
    """Lifecycle stage of a job."""

    STANDBY = "standby"
    RUNNING = "running"
    EXIT = "exit"
    ERROR = "error"


# Seconds between checks in Job.wait_async
DEFAULT_POLL_INTERVAL = 0.1

# Seconds to wait for a killed process to be reaped
KILL_TIMEOUT = 5.0

# Code recorded when a process ends without an exit code (killed by a signal)
ABNORMAL_EXIT_CODE = -1


class _StatusBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class Standby(_StatusBase):
    """No process has been spawned yet."""

    kind: Literal[StatusKind.STANDBY] = StatusKind.STANDBY

    def __str__(self) -> str:
        return "Standby"


class Running(_StatusBase):
    """A process was spawned and has not been observed to terminate."""

    kind: Literal[StatusKind.RUNNING] = StatusKind.RUNNING
    pid: int

    def __str__(self) -> str:
        return "Running"


class Exit(_StatusBase):
    """The process exited normally with code 0."""

    kind: Literal[StatusKind.EXIT] = StatusKind.EXIT
    code: int = 0

    def __str__(self) -> str:
        return f"Exit({self.code})"


class Error(_StatusBase):
    """The process exited with a non-zero code, or was terminated abnormally."""

    kind: Literal[StatusKind.ERROR] = StatusKind.ERROR
    code: int

    def __str__(self) -> str:
        return f"Error({self.code})"


Status = Annotated[
    Union[Standby, Running, Exit, Error],
    Field(discriminator="kind"),
]

TERMINAL_KINDS = frozenset({StatusKind.EXIT, StatusKind.ERROR})


def is_terminal(status: Status) -> bool:
    """Check if no further transition can happen from this status."""
    return status.kind in TERMINAL_KINDS


def classify_exit(code: int | None) -> Exit | Error:
    """Map an OS exit code to a terminal status.

    ``None`` means the process ended without a reportable code.
    """
    if code is None:
        return Error(code=ABNORMAL_EXIT_CODE)
    if code == 0:
        return Exit(code=0)
    return Error(code=code)


class JobSpec(BaseModel):
    """A named executable, as found in a jobs file."""

    name: str
    path: Path


class DispatchConfig(BaseModel):
    """Settings shared by every job started from the CLI."""

    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    kill_timeout: float = Field(default=KILL_TIMEOUT, gt=0)
