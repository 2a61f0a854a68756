import unittest

import pytest
import simplejson as json

from rargs.domain import JobResult, JobState, Record, RunSummary
from rargs.output import JsonPrinter, PlainPrinter, RobotPrinter, makePrinter

from .helpers import BytesOut


def result(state=JobState.SUCCEEDED, seq=0, **kwargs):
    kwargs.setdefault("argv", ("echo", "hi"))
    return JobResult(sequence_number=seq, state=state,
                     record=Record(seq, "hi"), **kwargs)


class PrinterTestCase(unittest.TestCase):
    printerClass = None

    def setUp(self):
        self.out = BytesOut()
        self.err = BytesOut()

    def printer(self, **kwargs):
        # pylint: disable=not-callable
        return self.printerClass(out=self.out, err=self.err, **kwargs)


class TestPlainPrinter(PrinterTestCase):
    printerClass = PlainPrinter

    def test_passes_output_through(self):
        self.printer()(result(rc=0, stdout=b"hi\n", stderr=b"warn\n"))
        self.assertEqual(b"hi\n", self.out.data())
        self.assertEqual(b"warn\n", self.err.data())

    def test_nonzero_is_quiet_by_default(self):
        self.printer()(result(JobState.FAILED_NONZERO, rc=1))
        self.assertEqual(b"", self.err.data())

    def test_nonzero_verbose(self):
        self.printer(verbose=1)(result(JobState.FAILED_NONZERO, seq=2, rc=1))
        self.assertEqual(b"rargs: line 3: exited with status 1\n", self.err.data())

    def test_extraction_failure_reported(self):
        self.printer(startNum=10)(
            result(JobState.EXTRACTION_FAILED, reason="no match", argv=()))
        self.assertEqual(b"rargs: line 10: extraction-failed: no match\n",
                         self.err.data())

    def test_quiet(self):
        self.printer(quiet=True)(
            result(JobState.SPAWN_ERROR, reason="nope: not found"))
        self.assertEqual(b"", self.err.data())

    def test_summary(self):
        self.printer().printSummary(RunSummary(total=2, succeeded=1, failed=1))
        self.assertEqual(
            "total=2 succeeded=1 failed=1 cancelled=0 aborted=False\n",
            self.err.getvalue())


class TestJsonPrinter(PrinterTestCase):
    printerClass = JsonPrinter

    def test_result(self):
        self.printer()(result(rc=0, stdout=b"hi\n", duration=0.5))
        data = json.loads(self.out.getvalue())
        self.assertEqual(data["state"], "succeeded")
        self.assertEqual(data["line"], 1)
        self.assertEqual(data["stdout"], "hi\n")
        self.assertEqual(data["argv"], ["echo", "hi"])
        self.assertEqual(data["duration"], 0.5)
        self.assertIsNone(data["start_time"])

    def test_one_line_per_result(self):
        printer = self.printer()
        printer(result(seq=0))
        printer(result(JobState.CANCELLED, seq=1, reason="not started"))
        lines = self.out.getvalue().splitlines()
        self.assertEqual(2, len(lines))
        self.assertEqual("cancelled", json.loads(lines[1])["state"])

    def test_summary(self):
        self.printer().printSummary(
            RunSummary(total=5, succeeded=1, failed=1, cancelled=3, aborted=True))
        data = json.loads(self.out.getvalue())
        self.assertTrue(data["summary"])
        self.assertEqual(data["exit_code"], 3)
        self.assertEqual(data["cancelled"], 3)


class TestRobotPrinter(PrinterTestCase):
    printerClass = RobotPrinter

    def test_result(self):
        self.printer()(result(JobState.FAILED_NONZERO, seq=1, rc=2))
        fields = self.out.getvalue().rstrip("\n").split("\0")
        self.assertEqual(
            ["finish", "line=2", "state=failed", "rc=2", "command=echo hi"], fields)


@pytest.mark.parametrize("name, cls", [
    ("plain", PlainPrinter),
    ("json", JsonPrinter),
    ("robot", RobotPrinter),
])
def testMakePrinter(name, cls):
    assert isinstance(makePrinter(name, out=BytesOut(), err=BytesOut()), cls)


def testMakePrinterUnknown():
    with pytest.raises(ValueError):
        makePrinter("xml")
