"""
Result collector: turns completion events into the output sequence.

In input order mode results are held back until every lower sequence number
has been emitted.  In completion order mode they are emitted on arrival.
"""

import logging
from typing import Callable, Dict

from .domain import JobResult

LOG = logging.getLogger(__name__)


class ResultCollector(object):
    def __init__(self, emit: Callable[[JobResult], None], ordered: bool = True):
        self._emit = emit
        self.ordered = ordered
        self._buffer: Dict[int, JobResult] = {}
        self._next = 0
        self.emitted = 0
        self.peakBuffered = 0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def nextSequence(self) -> int:
        return self._next

    def add(self, result: JobResult) -> None:
        if not self.ordered:
            self._send(result)
            return
        seq = result.sequence_number
        if seq < self._next or seq in self._buffer:
            raise ValueError("duplicate result for record {}".format(seq))
        self._buffer[seq] = result
        self.peakBuffered = max(self.peakBuffered, len(self._buffer))
        while self._next in self._buffer:
            self._send(self._buffer.pop(self._next))
            self._next += 1

    def _send(self, result):
        LOG.debug("emit %d %s", result.sequence_number, result.state.value)
        self.emitted += 1
        self._emit(result)

    def finish(self) -> None:
        """Check that nothing is left waiting for a missing result."""
        if self._buffer:
            missing = self._next
            raise RuntimeError(
                "{} results still buffered waiting for record {}".format(
                    len(self._buffer), missing))
