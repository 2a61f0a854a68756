"""Run-scoped state shared by the control path and the workers."""

import logging
import threading
from typing import Optional

LOG = logging.getLogger(__name__)


class RunContext(object):
    """
    Holds the cancellation flag for one run.  Every mutation goes through
    the lock so the first cancellation reason is the one that is kept.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._reason: Optional[str] = None
        self._cause: Optional[int] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def cause(self) -> Optional[int]:
        """Sequence number of the record that triggered cancellation."""
        return self._cause

    def cancel(self, reason: str, cause: Optional[int] = None) -> bool:
        """Request cancellation.  Returns True for the first request only."""
        with self._lock:
            if self._cancelled.is_set():
                return False
            self._reason = reason
            self._cause = cause
            self._cancelled.set()
        LOG.info("run cancelled: %s", reason)
        return True

    def wait(self, timeout=None) -> bool:
        return self._cancelled.wait(timeout)
