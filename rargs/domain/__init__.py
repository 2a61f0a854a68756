"""
Domain values for rargs.

Everything here is an immutable value passed between the pipeline stages;
no module in this package does I/O.
"""

from .record import FieldSet, Record, RenderedJob
from .result import (
    EXIT_ABORTED,
    EXIT_FAILURE,
    EXIT_INPUT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    EXIT_USAGE,
    JobResult,
    JobState,
    RunSummary,
)

__all__ = [
    "EXIT_ABORTED",
    "EXIT_FAILURE",
    "EXIT_INPUT_ERROR",
    "EXIT_INTERRUPTED",
    "EXIT_SUCCESS",
    "EXIT_USAGE",
    "FieldSet",
    "JobResult",
    "JobState",
    "Record",
    "RenderedJob",
    "RunSummary",
]
