"""
Execution controller: owns one run from the first record to the summary.

Reading, extraction and rendering happen here, on the calling thread; only
subprocess execution is handed to the scheduler.  Per-record problems are
turned into JobResults here so they reach the collector the same way as
finished jobs.
"""

from collections import Counter
import logging
from typing import BinaryIO, Callable, Optional, Union

from .collector import ResultCollector
from .config import RunConfig
from .context import RunContext
from .domain import JobResult, JobState, Record, RenderedJob, RunSummary
from .extract import ExtractionFailed, extract, makePattern
from .scheduler import JobScheduler
from .source import InputError, RecordReader
from .template import RenderError, Template, render

LOG = logging.getLogger(__name__)

# Results allowed to wait in the collector beyond one per worker.
WINDOW_SLACK = 1


class ExecutionController(object):
    # pylint: disable=too-many-instance-attributes

    def __init__(self, config: RunConfig,
                 emit: Optional[Callable[[JobResult], None]] = None):
        self.config = config
        self.context = RunContext()
        self.pattern = makePattern(config.pattern, config.fieldDelimiter,
                                   startNum=config.startNum)
        self.template = Template(config.template, separator=config.separator)
        self.collector = ResultCollector(self._emit, ordered=config.keepOrder)
        self.window = config.maxWorkers + WINDOW_SLACK
        self.scheduler: Optional[JobScheduler] = None
        self._output = emit
        self._counts = Counter()

    def _emit(self, result):
        if result.succeeded:
            self._counts["succeeded"] += 1
        elif result.cancelled:
            self._counts["cancelled"] += 1
        else:
            self._counts["failed"] += 1
        if self._output is not None:
            self._output(result)

    def prepare(self, record: Record) -> Union[RenderedJob, JobResult]:
        """Extract and render one record, or return the failure result."""
        try:
            fields = extract(self.pattern, record)
        except ExtractionFailed as error:
            return JobResult.forRecord(record, JobState.EXTRACTION_FAILED, str(error))
        try:
            return render(self.template, fields)
        except RenderError as error:
            return JobResult.forRecord(record, JobState.RENDER_ERROR, str(error))

    def run(self, stream: BinaryIO) -> RunSummary:
        reader = RecordReader(
            stream,
            delimiter=self.config.recordDelimiter,
            stripTrailingNewline=self.config.stripTrailingNewline,
            emitUnterminated=self.config.emitUnterminated,
            encoding=self.config.encoding)
        inputError = None
        if self.config.dryRun:
            try:
                for record in reader:
                    self._admit(record)
            except InputError as error:
                inputError = self._inputError(error)
        else:
            with JobScheduler(
                    self.config.maxWorkers,
                    self.context,
                    failFast=self.config.failFast,
                    killGrace=self.config.killGrace,
                    maxCapture=self.config.maxCapture) as scheduler:
                self.scheduler = scheduler
                try:
                    for record in reader:
                        self._admit(record)
                        self._drain(block=False)
                except InputError as error:
                    inputError = self._inputError(error)
                self._drain(block=True)
        self.collector.finish()
        summary = RunSummary(
            total=reader.count,
            succeeded=self._counts["succeeded"],
            failed=self._counts["failed"],
            cancelled=self._counts["cancelled"],
            aborted=self.context.cancelled,
            inputError=inputError,
        )
        LOG.info("run finished: %r", summary)
        return summary

    def _inputError(self, error):
        LOG.error("%s", error)
        return str(error)

    def _admit(self, record):
        if self.context.cancelled:
            self._addLocal(JobResult.forRecord(
                record, JobState.CANCELLED,
                "not started ({})".format(self.context.reason)))
            return
        job = self.prepare(record)
        if isinstance(job, JobResult):
            LOG.debug("record %d: %s", record.sequence_number, job.describe())
            if self.config.strictExtraction:
                self.context.cancel(
                    "strict mode after record {} {}".format(
                        record.sequence_number, job.describe()),
                    record.sequence_number)
            self._addLocal(job)
            return
        if self.config.dryRun:
            self.collector.add(JobResult.dryRun(job))
            return
        self._waitForWindow()
        self.scheduler.submit(job)

    def _addLocal(self, result):
        """
        Hand over a result that never went through the scheduler.  It takes
        a place in the window like a submitted job, and with a single worker
        it waits for the running job so output stays in input order.
        """
        if self.scheduler is not None:
            if self.config.maxWorkers == 1:
                self._drain(block=True)
            else:
                self._waitForWindow()
        self.collector.add(result)

    def _waitForWindow(self):
        scheduler = self.scheduler
        while scheduler.inFlight and \
                scheduler.inFlight + self.collector.buffered >= self.window:
            self.collector.add(scheduler.nextResult(block=True))

    def _drain(self, block):
        scheduler = self.scheduler
        while scheduler.inFlight:
            result = scheduler.nextResult(block=block)
            if result is None:
                return
            self.collector.add(result)
