"""
Field extraction.

A pattern engine turns the text of one record into a FieldSet.  Engines are
stateless after construction so a single instance can be shared freely.

Example, with the pattern ``^(?P<year>\\d{4})-(\\d{2})-(\\d{2})$`` and the
record ``2018-10-21``::

    {} / {0}      => "2018-10-21"
    {1} / {year}  => "2018"
    {2}           => "10"
    {3}           => "21"
"""

import logging
import re
from typing import Optional

from .domain import FieldSet, Record

LOG = logging.getLogger(__name__)

CONTEXT_KEY_LINENUM = "LINENUM"
CONTEXT_KEY_LINENUM_SHORT = "LN"

WHITESPACE_PATTERN = r"(.*?)\s+|(.*?)$"


class ExtractionFailed(Exception):
    """The pattern did not match the record."""


class PatternEngine(object):
    """Interface for pattern engines: ``match(text)`` returns the fields."""

    def match(self, record: Record) -> FieldSet:
        raise NotImplementedError


class RegexPattern(PatternEngine):
    """
    Regular-expression engine.

    Every non-overlapping match in the record contributes its numbered groups,
    in order, to the positional fields; groups that did not participate are
    skipped.  Named groups are also available by name (the last match wins).
    """

    def __init__(self, pattern: str, startNum: int = 1, alwaysMatches: bool = False):
        try:
            self.regex = re.compile(pattern)
        except re.error as error:
            raise ValueError("invalid pattern {!r}: {}".format(pattern, error)) from error
        self.startNum = startNum
        self.alwaysMatches = alwaysMatches

    def __repr__(self):
        return "RegexPattern({!r})".format(self.regex.pattern)

    def match(self, record: Record) -> FieldSet:
        text = record.raw_text
        groups = []
        named = {}
        matched = False
        lastEnd = None
        for mat in self.regex.finditer(text):
            # An empty match right where the previous match ended is not a
            # new field (e.g. the "$" alternative after the last field).
            if mat.start() == mat.end() == lastEnd:
                continue
            lastEnd = mat.end()
            matched = True
            groups.extend(grp for grp in mat.groups() if grp is not None)
            for name, value in mat.groupdict().items():
                if value is not None:
                    named[name] = value
        if not matched and not self.alwaysMatches:
            raise ExtractionFailed(
                "pattern {!r} does not match {!r}".format(self.regex.pattern, text))
        lineNum = str(record.line_number(self.startNum))
        named[CONTEXT_KEY_LINENUM] = lineNum
        named[CONTEXT_KEY_LINENUM_SHORT] = lineNum
        return FieldSet(record, groups, named)


def delimiterPattern(delimiter: str, startNum: int = 1) -> RegexPattern:
    """Split fields on a regex delimiter."""
    return RegexPattern(r"(.*?){}|(.*?)$".format(delimiter), startNum=startNum,
                        alwaysMatches=True)


def makePattern(pattern: Optional[str] = None, delimiter: Optional[str] = None,
                startNum: int = 1) -> PatternEngine:
    if pattern is not None and delimiter is not None:
        raise ValueError("pattern and delimiter are mutually exclusive")
    if pattern is not None:
        return RegexPattern(pattern, startNum=startNum)
    if delimiter is not None:
        return delimiterPattern(delimiter, startNum=startNum)
    return RegexPattern(WHITESPACE_PATTERN, startNum=startNum, alwaysMatches=True)


def extract(pattern: PatternEngine, record: Record) -> FieldSet:
    """Apply pattern to record.  Raises ExtractionFailed on a mismatch."""
    fields = pattern.match(record)
    LOG.debug("record %d: %r", record.sequence_number, fields)
    return fields
