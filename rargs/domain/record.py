"""
Input-side values: the records read from the input stream, the fields
extracted from them and the commands rendered from those fields.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from shlex import quote
from types import MappingProxyType
from typing import Iterator, Optional, Tuple, Union

FieldKey = Union[int, str]


@dataclass(frozen=True)
class Record:
    """One unit of input text and its position in the input."""

    sequence_number: int
    raw_text: str

    def line_number(self, start: int = 1) -> int:
        return start + self.sequence_number


class FieldSet(Mapping):
    """
    Fields extracted from exactly one Record.

    Positional fields are keyed by int: 0 is the whole record text and
    1..N are the captured groups in order.  Named groups and context values
    (such as the line number) are keyed by str.  The empty name is an alias
    for the whole record.
    """

    __slots__ = ("_record", "_groups", "_named")

    def __init__(self, record: Record, groups=(), named: Optional[Mapping] = None):
        object.__setattr__(self, "_record", record)
        object.__setattr__(self, "_groups", tuple(groups))
        object.__setattr__(self, "_named", MappingProxyType(dict(named or {})))

    def __setattr__(self, name, value):
        raise AttributeError("FieldSet is immutable")

    @property
    def record(self) -> Record:
        return self._record

    @property
    def groups(self) -> Tuple[str, ...]:
        return self._groups

    @property
    def named(self) -> Mapping:
        return self._named

    def __getitem__(self, key: FieldKey) -> str:
        if isinstance(key, bool):
            raise KeyError(key)
        if isinstance(key, int):
            if key == 0:
                return self._record.raw_text
            if 1 <= key <= len(self._groups):
                return self._groups[key - 1]
            raise KeyError(key)
        if key == "":
            return self._record.raw_text
        return self._named[key]

    def __iter__(self) -> Iterator[FieldKey]:
        yield from range(len(self._groups) + 1)
        yield from self._named

    def __len__(self) -> int:
        return len(self._groups) + 1 + len(self._named)

    def __repr__(self):
        return "FieldSet(seq={}, groups={!r}, named={!r})".format(
            self._record.sequence_number, self._groups, dict(self._named))


@dataclass(frozen=True)
class RenderedJob:
    """A fully materialized command for one Record."""

    sequence_number: int
    argv: Tuple[str, ...]
    record: Record

    def __post_init__(self):
        if not isinstance(self.argv, tuple):
            object.__setattr__(self, "argv", tuple(self.argv))

    def cmd_str(self) -> str:
        return " ".join(quote(arg) for arg in self.argv)
