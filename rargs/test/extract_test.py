import unittest

import pytest

from rargs.domain import Record
from rargs.extract import (
    CONTEXT_KEY_LINENUM,
    CONTEXT_KEY_LINENUM_SHORT,
    ExtractionFailed,
    RegexPattern,
    extract,
    makePattern,
)

DATE_PATTERN = r"^(?P<year>\d{4})-(\d{2})-(\d{2})$"


@pytest.mark.parametrize("text, groups", [
    ("a b c", ("a", "b", "c")),
    ("a  b\tc", ("a", "b", "c")),
    ("a b ", ("a", "b")),
    ("single", ("single",)),
    ("", ("",)),
])
def testWhitespaceDefault(text, groups):
    fields = extract(makePattern(), Record(0, text))
    assert fields.groups == groups
    assert fields[0] == text


@pytest.mark.parametrize("delimiter, text, groups", [
    (",", "a,b,c", ("a", "b", "c")),
    (",", "a,,c", ("a", "", "c")),
    (r"\s*;\s*", "x ; y;z", ("x", "y", "z")),
    (",", "no delimiter", ("no delimiter",)),
])
def testDelimiter(delimiter, text, groups):
    fields = extract(makePattern(delimiter=delimiter), Record(0, text))
    assert fields.groups == groups


class TestRegexPattern(unittest.TestCase):
    def test_named_and_positional(self):
        fields = extract(RegexPattern(DATE_PATTERN), Record(0, "2018-10-21"))
        self.assertEqual(fields.groups, ("2018", "10", "21"))
        self.assertEqual(fields["year"], "2018")
        self.assertEqual(fields[2], "10")
        self.assertEqual(fields[0], "2018-10-21")

    def test_mismatch(self):
        with self.assertRaises(ExtractionFailed) as ctx:
            extract(RegexPattern(DATE_PATTERN), Record(0, "not a date"))
        self.assertIn("not a date", str(ctx.exception))

    def test_unset_groups_skipped(self):
        fields = extract(RegexPattern(r"(a)|(b)"), Record(0, "ab"))
        self.assertEqual(fields.groups, ("a", "b"))

    def test_repeated_matches_append(self):
        fields = extract(RegexPattern(r"(\d+)"), Record(0, "x1 y22 z333"))
        self.assertEqual(fields.groups, ("1", "22", "333"))

    def test_line_number(self):
        pattern = makePattern(startNum=10)
        fields = extract(pattern, Record(2, "a"))
        self.assertEqual(fields[CONTEXT_KEY_LINENUM], "12")
        self.assertEqual(fields[CONTEXT_KEY_LINENUM_SHORT], "12")

    def test_invalid_regex(self):
        with self.assertRaises(ValueError):
            RegexPattern("(unclosed")

    def test_pattern_and_delimiter(self):
        with self.assertRaises(ValueError):
            makePattern(pattern="(a)", delimiter=",")

    def test_shared_instance(self):
        pattern = RegexPattern(r"(\w+)=(\w+)")
        first = extract(pattern, Record(0, "a=1"))
        second = extract(pattern, Record(1, "b=2"))
        self.assertEqual(first.groups, ("a", "1"))
        self.assertEqual(second.groups, ("b", "2"))
