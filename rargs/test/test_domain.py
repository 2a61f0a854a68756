"""
Tests for domain models.
"""

import unittest

import pytest

from rargs.domain import (
    EXIT_ABORTED,
    EXIT_FAILURE,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    FieldSet,
    JobResult,
    JobState,
    Record,
    RenderedJob,
    RunSummary,
)
from rargs.domain.result import checkTransition


class TestRecord(unittest.TestCase):
    def test_line_number(self):
        record = Record(4, "text")
        self.assertEqual(record.line_number(), 5)
        self.assertEqual(record.line_number(start=10), 14)
        self.assertEqual(record.line_number(start=0), 4)

    def test_frozen(self):
        record = Record(0, "a")
        with self.assertRaises(AttributeError):
            record.raw_text = "b"


class TestFieldSet(unittest.TestCase):
    """Test FieldSet lookups."""

    def setUp(self):
        self.record = Record(0, "2018-10-21")
        self.fields = FieldSet(self.record, ["2018", "10", "21"], {"year": "2018"})

    def test_positional(self):
        self.assertEqual(self.fields[0], "2018-10-21")
        self.assertEqual(self.fields[1], "2018")
        self.assertEqual(self.fields[3], "21")
        with self.assertRaises(KeyError):
            self.fields[4]  # pylint: disable=pointless-statement

    def test_named(self):
        self.assertEqual(self.fields["year"], "2018")
        self.assertEqual(self.fields[""], "2018-10-21")
        with self.assertRaises(KeyError):
            self.fields["month"]  # pylint: disable=pointless-statement

    def test_bool_key_rejected(self):
        with self.assertRaises(KeyError):
            self.fields[True]  # pylint: disable=pointless-statement

    def test_mapping(self):
        self.assertEqual(list(self.fields), [0, 1, 2, 3, "year"])
        self.assertEqual(len(self.fields), 5)
        self.assertIn("year", self.fields)
        self.assertEqual(self.fields.get(7, "x"), "x")

    def test_immutable(self):
        with self.assertRaises(AttributeError):
            self.fields.foo = 1
        with self.assertRaises(TypeError):
            self.fields.named["year"] = "1999"  # pylint: disable=unsupported-assignment-operation

    def test_no_groups(self):
        fields = FieldSet(Record(3, "abc"))
        self.assertEqual(fields.groups, ())
        self.assertEqual(fields[0], "abc")
        self.assertIs(fields.record.sequence_number, 3)


class TestRenderedJob(unittest.TestCase):
    def test_argv_is_tuple(self):
        job = RenderedJob(0, ["echo", "hi"], Record(0, "hi"))
        self.assertEqual(job.argv, ("echo", "hi"))

    def test_cmd_str_quotes(self):
        job = RenderedJob(0, ("echo", "a b", "it's"), Record(0, ""))
        self.assertEqual(job.cmd_str(), "echo 'a b' 'it'\"'\"'s'")


class TestJobState(unittest.TestCase):
    def test_terminal(self):
        self.assertFalse(JobState.QUEUED.terminal)
        self.assertFalse(JobState.RUNNING.terminal)
        for state in (JobState.SUCCEEDED, JobState.FAILED_NONZERO, JobState.SIGNALLED,
                      JobState.SPAWN_ERROR, JobState.EXTRACTION_FAILED,
                      JobState.RENDER_ERROR, JobState.CANCELLED):
            self.assertTrue(state.terminal, state)

    def test_failure(self):
        self.assertFalse(JobState.SUCCEEDED.failure)
        self.assertFalse(JobState.CANCELLED.failure)
        self.assertTrue(JobState.FAILED_NONZERO.failure)
        self.assertTrue(JobState.SIGNALLED.failure)
        self.assertTrue(JobState.EXTRACTION_FAILED.failure)


@pytest.mark.parametrize("current, new", [
    (JobState.QUEUED, JobState.RUNNING),
    (JobState.QUEUED, JobState.SPAWN_ERROR),
    (JobState.QUEUED, JobState.CANCELLED),
    (JobState.RUNNING, JobState.SUCCEEDED),
    (JobState.RUNNING, JobState.FAILED_NONZERO),
    (JobState.RUNNING, JobState.SIGNALLED),
    (JobState.RUNNING, JobState.CANCELLED),
])
def testAllowedTransition(current, new):
    assert checkTransition(current, new) is new


@pytest.mark.parametrize("current, new", [
    (JobState.QUEUED, JobState.SUCCEEDED),
    (JobState.RUNNING, JobState.QUEUED),
    (JobState.SUCCEEDED, JobState.RUNNING),
    (JobState.CANCELLED, JobState.RUNNING),
])
def testRejectedTransition(current, new):
    with pytest.raises(ValueError):
        checkTransition(current, new)


class TestJobResult(unittest.TestCase):
    def test_requires_terminal_state(self):
        with self.assertRaises(ValueError):
            JobResult(sequence_number=0, state=JobState.RUNNING)

    def test_for_record(self):
        record = Record(2, "x")
        result = JobResult.forRecord(record, JobState.EXTRACTION_FAILED, "no match")
        self.assertEqual(result.sequence_number, 2)
        self.assertTrue(result.failed)
        self.assertFalse(result.succeeded)
        self.assertIs(result.record, record)
        self.assertEqual(result.describe(), "extraction-failed: no match")

    def test_dry_run(self):
        job = RenderedJob(1, ("touch", "a file"), Record(1, "a file"))
        result = JobResult.dryRun(job)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.stdout, b"touch 'a file'\n")
        self.assertEqual(result.rc, 0)

    def test_describe(self):
        self.assertEqual(
            JobResult(sequence_number=0, state=JobState.FAILED_NONZERO, rc=3).describe(),
            "exited with status 3")
        self.assertEqual(
            JobResult(sequence_number=0, state=JobState.SIGNALLED, signal=9,
                      reason="SIGKILL").describe(),
            "killed by SIGKILL")
        self.assertEqual(
            JobResult(sequence_number=0, state=JobState.CANCELLED).describe(),
            "cancelled")


class TestRunSummary(unittest.TestCase):
    def test_exit_codes(self):
        self.assertEqual(RunSummary(total=2, succeeded=2).exitCode, EXIT_SUCCESS)
        self.assertEqual(RunSummary(total=2, succeeded=1, failed=1).exitCode,
                         EXIT_FAILURE)
        self.assertEqual(
            RunSummary(total=5, succeeded=1, failed=1, cancelled=3,
                       aborted=True).exitCode,
            EXIT_ABORTED)
        self.assertEqual(RunSummary(inputError="bad byte").exitCode, EXIT_INPUT_ERROR)

    def test_as_dict(self):
        self.assertEqual(
            RunSummary(total=3, succeeded=2, failed=1).asDict(),
            {"total": 3, "succeeded": 2, "failed": 1, "cancelled": 0, "aborted": False})
