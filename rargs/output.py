"""
Result printers: how finished jobs are shown to the user.
"""

import logging
import sys

import simplejson as json

from .domain import JobResult, JobState, RunSummary
from .utils import autoDecode, robotLine, sprint, swrite

LOG = logging.getLogger(__name__)

_REPORTED = frozenset([
    JobState.SIGNALLED,
    JobState.SPAWN_ERROR,
    JobState.EXTRACTION_FAILED,
    JobState.RENDER_ERROR,
])


class ResultPrinter(object):
    def __init__(self, out=None, err=None, startNum=1, verbose=0, quiet=False):
        # pylint: disable=too-many-arguments
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.startNum = startNum
        self.verbose = verbose
        self.quiet = quiet

    def lineNumber(self, result: JobResult) -> int:
        return self.startNum + result.sequence_number

    def __call__(self, result: JobResult) -> None:
        self.printResult(result)

    def printResult(self, result: JobResult) -> None:
        raise NotImplementedError

    def printSummary(self, summary: RunSummary) -> None:
        sprint(" ".join("{}={}".format(key, val)
                        for key, val in summary.asDict().items()),
               file=self.err)


class PlainPrinter(ResultPrinter):
    """Pass each job's output through, one job at a time."""

    def printResult(self, result):
        swrite(self.out, result.stdout)
        swrite(self.err, result.stderr)
        if self.quiet:
            return
        if result.state in _REPORTED or (
                self.verbose and result.state != JobState.SUCCEEDED):
            sprint("rargs: line {}: {}".format(self.lineNumber(result),
                                               result.describe()),
                   file=self.err)


class JsonPrinter(ResultPrinter):
    """One JSON object per line."""

    def asDict(self, result):
        return {
            "sequence_number": result.sequence_number,
            "line": self.lineNumber(result),
            "state": result.state.value,
            "rc": result.rc,
            "signal": result.signal,
            "reason": result.reason,
            "argv": list(result.argv),
            "stdout": autoDecode(result.stdout),
            "stderr": autoDecode(result.stderr),
            "duration": round(result.duration, 6),
            "start_time": result.start_time.isoformat() if result.start_time else None,
        }

    def printResult(self, result):
        sprint(json.dumps(self.asDict(result), sort_keys=True), file=self.out)
        self.out.flush()

    def printSummary(self, summary):
        data = dict(summary.asDict(), summary=True, exit_code=summary.exitCode)
        sprint(json.dumps(data, sort_keys=True), file=self.out)


class RobotPrinter(ResultPrinter):
    """NUL-separated key=value records for scripts."""

    def printResult(self, result):
        sprint(robotLine(
            "finish",
            {"line": self.lineNumber(result)},
            {"state": result.state.value},
            {"rc": result.rc},
            {"command": " ".join(result.argv)},
        ), file=self.out)
        self.out.flush()

    def printSummary(self, summary):
        sprint(robotLine("summary", summary.asDict()), file=self.out)


PRINTERS = {
    "plain": PlainPrinter,
    "json": JsonPrinter,
    "robot": RobotPrinter,
}


def makePrinter(outputFormat, **kwargs) -> ResultPrinter:
    try:
        cls = PRINTERS[outputFormat]
    except KeyError:
        raise ValueError("unknown output format {!r}".format(outputFormat)) from None
    LOG.debug("printer %s", cls.__name__)
    return cls(**kwargs)
