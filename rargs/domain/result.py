"""
Outcome values: the terminal state recorded for every record and the
summary of a whole run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .record import Record, RenderedJob

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_ABORTED = 3
EXIT_INPUT_ERROR = 4
EXIT_INTERRUPTED = 130


class JobState(Enum):
    """Job lifecycle states."""

    QUEUED = "queued"  # Submitted, waiting for a worker slot
    RUNNING = "running"  # Subprocess spawned
    SUCCEEDED = "succeeded"
    FAILED_NONZERO = "failed"  # Exited with a non-zero code
    SIGNALLED = "signalled"  # Terminated by a signal it did not get from us
    SPAWN_ERROR = "spawn-error"
    EXTRACTION_FAILED = "extraction-failed"
    RENDER_ERROR = "render-error"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self not in (JobState.QUEUED, JobState.RUNNING)

    @property
    def failure(self) -> bool:
        return self in _FAILURES


_FAILURES = frozenset([
    JobState.FAILED_NONZERO,
    JobState.SIGNALLED,
    JobState.SPAWN_ERROR,
    JobState.EXTRACTION_FAILED,
    JobState.RENDER_ERROR,
])

_ALLOWED = {
    JobState.QUEUED: frozenset([JobState.RUNNING, JobState.SPAWN_ERROR,
                                JobState.CANCELLED]),
    JobState.RUNNING: frozenset([JobState.SUCCEEDED, JobState.FAILED_NONZERO,
                                 JobState.SIGNALLED, JobState.CANCELLED]),
}


def checkTransition(current: JobState, new: JobState) -> JobState:
    if new not in _ALLOWED.get(current, frozenset()):
        raise ValueError("invalid job transition {} -> {}".format(
            current.value, new.value))
    return new


@dataclass(frozen=True)
class JobResult:  # pylint: disable=too-many-instance-attributes
    """
    The terminal outcome of one Record.

    Exactly one JobResult is produced per Record read from the input,
    whether the command ran, could not be built, or was skipped.
    """

    sequence_number: int
    state: JobState
    rc: Optional[int] = None
    signal: Optional[int] = None
    reason: Optional[str] = None
    stdout: bytes = b""
    stderr: bytes = b""
    duration: float = 0.0
    argv: Tuple[str, ...] = ()
    record: Optional[Record] = field(default=None, compare=False)
    start_time: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.state.terminal:
            raise ValueError("JobResult requires a terminal state, got {}".format(
                self.state.value))

    @property
    def succeeded(self) -> bool:
        return self.state == JobState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.state.failure

    @property
    def cancelled(self) -> bool:
        return self.state == JobState.CANCELLED

    def describe(self) -> str:
        if self.state == JobState.SUCCEEDED:
            return "ok"
        if self.state == JobState.FAILED_NONZERO:
            return "exited with status {}".format(self.rc)
        if self.state == JobState.SIGNALLED:
            return "killed by {}".format(self.reason or self.signal)
        return "{}: {}".format(self.state.value, self.reason) if self.reason \
            else self.state.value

    @classmethod
    def forRecord(cls, record: Record, state: JobState, reason: str,
                  argv=()) -> "JobResult":
        return cls(
            sequence_number=record.sequence_number,
            state=state,
            reason=reason,
            argv=tuple(argv),
            record=record,
        )

    @classmethod
    def dryRun(cls, job: RenderedJob) -> "JobResult":
        return cls(
            sequence_number=job.sequence_number,
            state=JobState.SUCCEEDED,
            rc=0,
            stdout=(job.cmd_str() + "\n").encode("utf-8"),
            argv=job.argv,
            record=job.record,
        )


@dataclass(frozen=True)
class RunSummary:
    """Aggregate counts for a finished run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    aborted: bool = False
    inputError: Optional[str] = None

    @property
    def exitCode(self) -> int:
        if self.inputError is not None:
            return EXIT_INPUT_ERROR
        if self.aborted:
            return EXIT_ABORTED
        if self.failed or self.cancelled:
            return EXIT_FAILURE
        return EXIT_SUCCESS

    def asDict(self):
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "aborted": self.aborted,
        }
