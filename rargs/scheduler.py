"""
Job scheduler: runs rendered jobs as subprocesses on a fixed pool of worker
slots.

A counting gate guards admission, so no more than maxWorkers subprocesses
exist at any time.  Jobs are admitted in submission order; they complete in
whatever order the subprocesses finish.  Results are handed back through a
single queue that only the control path reads.

Fail-fast: the first failing job cancels the run context.  Jobs still
waiting for a slot become CANCELLED without being spawned, and running
subprocesses get SIGTERM, then SIGKILL after the grace period.  A
subprocess that survives SIGKILL for another grace period is abandoned so
the slot can be reused.
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import os
import queue
import select
import signal
import subprocess
import threading
import time
from typing import Optional

from .context import RunContext
from .domain import JobResult, JobState, RenderedJob
from .domain.result import checkTransition
from .utils import TailBuffer, signalName, signalProcGroup, utcNow

LOG = logging.getLogger(__name__)
POLL_INTERVAL = 0.05
READ_SIZE = 4096


class _WorkerCrash(object):
    __slots__ = ("error",)

    def __init__(self, error):
        self.error = error


class _Execution(object):
    """Per-job state machine: QUEUED -> RUNNING -> terminal."""

    def __init__(self, job: RenderedJob):
        self.job = job
        self.state = JobState.QUEUED
        self.startTime = None
        self.started = None

    def advance(self, state: JobState) -> None:
        self.state = checkTransition(self.state, state)
        LOG.debug("job %d: %s", self.job.sequence_number, state.value)

    def elapsed(self):
        if self.started is None:
            return 0.0
        return time.monotonic() - self.started


class JobScheduler(object):
    # pylint: disable=too-many-instance-attributes

    def __init__(self, maxWorkers: int, context: RunContext, failFast: bool = False,
                 killGrace: float = 5.0, maxCapture: Optional[int] = None):
        if maxWorkers < 1:
            raise ValueError("JobScheduler requires maxWorkers >= 1")
        self.maxWorkers = maxWorkers
        self.context = context
        self.failFast = failFast
        self.killGrace = killGrace
        self.maxCapture = maxCapture
        self._slots = threading.BoundedSemaphore(maxWorkers)
        self._pool = ThreadPoolExecutor(max_workers=maxWorkers,
                                        thread_name_prefix="rargs-worker")
        self._results = queue.Queue()
        self._lock = threading.Lock()
        self._running = 0
        self._peakRunning = 0
        self._outstanding = 0

    def __enter__(self):
        return self

    def __exit__(self, excType, excVal, excTb):
        if excType is not None:
            self.context.cancel("interrupted by {}".format(excType.__name__))
        self.shutdown()

    def shutdown(self):
        self._pool.shutdown(wait=True)

    @property
    def inFlight(self) -> int:
        """Jobs submitted whose result has not been taken yet."""
        return self._outstanding

    @property
    def running(self) -> int:
        with self._lock:
            return self._running

    @property
    def peakRunning(self) -> int:
        with self._lock:
            return self._peakRunning

    def submit(self, job: RenderedJob) -> None:
        """Queue job, blocking until a worker slot is free."""
        execution = _Execution(job)
        self._outstanding += 1
        self._slots.acquire()
        if self.context.cancelled:
            self._slots.release()
            self._results.put(self._cancelled(execution, "not started"))
            return
        try:
            future = self._pool.submit(self._run, execution)
        except RuntimeError:
            self._slots.release()
            self._outstanding -= 1
            raise
        future.add_done_callback(self._checkCrash)

    def nextResult(self, block: bool = True) -> Optional[JobResult]:
        """
        Take the next finished result, or None when block is False and
        nothing is ready.  Re-raises any unexpected worker exception.
        """
        try:
            item = self._results.get(block=block)
        except queue.Empty:
            return None
        self._outstanding -= 1
        if isinstance(item, _WorkerCrash):
            raise item.error
        return item

    def _checkCrash(self, future):
        error = future.exception()
        if error is not None:
            LOG.debug("worker crashed", exc_info=error)
            self._results.put(_WorkerCrash(error))

    def _cancelled(self, execution, detail):
        execution.advance(JobState.CANCELLED)
        reason = "{} ({})".format(detail, self.context.reason) \
            if self.context.reason else detail
        job = execution.job
        return JobResult(
            sequence_number=job.sequence_number,
            state=JobState.CANCELLED,
            reason=reason,
            argv=job.argv,
            record=job.record,
        )

    def _run(self, execution):
        job = execution.job
        try:
            if self.context.cancelled:
                result = self._cancelled(execution, "not started")
            else:
                result = self._execute(execution)
            if result.failed and self.failFast:
                self.context.cancel(
                    "fail-fast after job {} {}".format(job.sequence_number,
                                                      result.describe()),
                    job.sequence_number)
            self._results.put(result)
        finally:
            self._slots.release()

    def _enter(self):
        with self._lock:
            if self._running >= self.maxWorkers:
                raise RuntimeError(
                    "worker slot overrun: {} subprocesses already running".format(
                        self._running))
            self._running += 1
            self._peakRunning = max(self._peakRunning, self._running)

    def _leave(self):
        with self._lock:
            self._running -= 1

    def _execute(self, execution):
        job = execution.job
        execution.startTime = utcNow()
        execution.started = time.monotonic()
        LOG.debug("job %d: execute %s", job.sequence_number, job.cmd_str())
        try:
            proc = subprocess.Popen(  # pylint: disable=consider-using-with
                job.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True)
        except OSError as err:
            LOG.debug("job %d: spawn failed", job.sequence_number, exc_info=True)
            execution.advance(JobState.SPAWN_ERROR)
            return JobResult(
                sequence_number=job.sequence_number,
                state=JobState.SPAWN_ERROR,
                reason="{}: {}".format(job.argv[0], err.strerror or err),
                argv=job.argv,
                record=job.record,
                duration=execution.elapsed(),
                start_time=execution.startTime,
            )

        execution.advance(JobState.RUNNING)
        try:
            self._enter()
        except RuntimeError:
            self._reap(proc, job)
            raise
        try:
            stdout, stderr, terminated = self._communicate(proc, job)
        finally:
            self._reap(proc, job)
            self._leave()
        return self._finish(execution, proc.returncode, stdout, stderr, terminated)

    def _communicate(self, proc, job):
        """
        Collect output until the process exits, holding on to no more than
        maxCapture bytes of each stream.  Returns (stdout, stderr,
        terminated) where terminated means a cancellation signal was sent.
        """
        stdout = TailBuffer(self.maxCapture)
        stderr = TailBuffer(self.maxCapture)
        buffers = {proc.stdout.fileno(): stdout, proc.stderr.fileno(): stderr}
        openFds = list(buffers)
        deadline = None
        killed = False
        while openFds or proc.poll() is None:
            if openFds:
                ready, _, _ = select.select(openFds, [], [], POLL_INTERVAL)
                for fd in ready:
                    data = os.read(fd, READ_SIZE)
                    if data:
                        buffers[fd].write(data)
                    else:
                        openFds.remove(fd)
            else:
                try:
                    proc.wait(timeout=POLL_INTERVAL)
                except subprocess.TimeoutExpired:
                    pass
            if not self.context.cancelled:
                continue
            now = time.monotonic()
            if deadline is None:
                LOG.debug("job %d: terminate pgrp %d", job.sequence_number, proc.pid)
                signalProcGroup(proc.pid, signal.SIGTERM)
                deadline = now + self.killGrace
            elif now >= deadline and not killed:
                LOG.debug("job %d: kill pgrp %d", job.sequence_number, proc.pid)
                signalProcGroup(proc.pid, signal.SIGKILL)
                killed = True
                deadline = now + self.killGrace
            elif now >= deadline:
                LOG.warning("job %d: pid %d survived SIGKILL, abandoning it",
                            job.sequence_number, proc.pid)
                return stdout.getvalue(), stderr.getvalue(), True
        return stdout.getvalue(), stderr.getvalue(), deadline is not None

    def _reap(self, proc, job):
        if proc.returncode is None:
            signalProcGroup(proc.pid, signal.SIGKILL)
            try:
                proc.wait(timeout=self.killGrace)
            except subprocess.TimeoutExpired:
                LOG.warning("job %d: unable to reap pid %d", job.sequence_number,
                            proc.pid)
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                pipe.close()

    def _finish(self, execution, rc, stdout, stderr, terminated):
        # pylint: disable=too-many-arguments
        job = execution.job
        sig = None
        reason = None
        if terminated:
            state = JobState.CANCELLED
            reason = "terminated ({})".format(self.context.reason)
        elif rc == 0:
            state = JobState.SUCCEEDED
        elif rc is not None and rc < 0:
            state = JobState.SIGNALLED
            sig = -rc
            reason = signalName(sig)
        else:
            state = JobState.FAILED_NONZERO
        execution.advance(state)
        LOG.debug("job %d: rc=%r state=%s", job.sequence_number, rc, state.value)
        return JobResult(
            sequence_number=job.sequence_number,
            state=state,
            rc=rc,
            signal=sig,
            reason=reason,
            stdout=stdout or b"",
            stderr=stderr or b"",
            duration=execution.elapsed(),
            argv=job.argv,
            record=job.record,
            start_time=execution.startTime,
        )
