"""
Command templates.

Each argument of the command line is compiled once into an ArgTemplate: a
list of literal and placeholder fragments.  Rendering a template against a
FieldSet produces the argv of one job.

Placeholders:

    {} {0}          the whole record
    {N} {-N}        N-th field (1-based), negative counts from the end
    {name}          named group or context key (LINENUM, LN)
    {L..R} {L..R:S} fields L to R joined by the separator (or S)
    {L...R}         fields L to R, each as a separate argument

Either end of a range may be omitted.  Anything else in braces is kept as is.
"""

from dataclasses import dataclass
import logging
import re
from typing import List, Optional, Sequence, Tuple, Union

from .domain import FieldSet, RenderedJob

LOG = logging.getLogger(__name__)

CMD_REGEX = re.compile(r"\{\s*[^{}]*\s*\}")
FIELD_NAMED = re.compile(r"^\{\s*(?P<name>\w*)\s*\}$")
FIELD_SINGLE = re.compile(r"^\{\s*(?P<num>-?\d+)\s*\}$")
FIELD_RANGE = re.compile(
    r"^\{(?P<left>-?\d*)\.\.(?P<right>-?\d*)(?::(?P<sep>.*))?\}$", re.DOTALL)
FIELD_SPLIT_RANGE = re.compile(r"^\{(?P<left>-?\d*)\.\.\.(?P<right>-?\d*)\}$")


class RenderError(Exception):
    """A placeholder refers to a field that the record does not have."""


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Named:
    name: str


@dataclass(frozen=True)
class Single:
    index: int


@dataclass(frozen=True)
class Range:
    left: int
    right: int
    sep: Optional[str] = None


@dataclass(frozen=True)
class SplitRange:
    left: int
    right: int


Fragment = Union[Literal, Named, Single, Range, SplitRange]


def _bound(text, default):
    try:
        return int(text)
    except (TypeError, ValueError):
        return default


def parseFragment(fieldString: str) -> Fragment:
    mat = FIELD_SINGLE.match(fieldString)
    if mat:
        return Single(int(mat.group("num")))
    mat = FIELD_NAMED.match(fieldString)
    if mat:
        return Named(mat.group("name"))
    mat = FIELD_RANGE.match(fieldString)
    if mat:
        return Range(_bound(mat.group("left"), 1), _bound(mat.group("right"), -1),
                     mat.group("sep"))
    mat = FIELD_SPLIT_RANGE.match(fieldString)
    if mat:
        return SplitRange(_bound(mat.group("left"), 1), _bound(mat.group("right"), -1))
    return Literal(fieldString)


def _translate(idx, count):
    if idx < 0:
        idx += count + 1
    return max(0, idx)


def _rangeValues(groups: Sequence[str], left: int, right: int) -> Sequence[str]:
    count = len(groups)
    left = _translate(left, count)
    right = _translate(right, count)
    if left == 0:
        return groups[:right]
    if right > count:
        return groups[left - 1:]
    if left == right:
        return groups[left - 1:left]
    return groups[left - 1:right]


class ArgTemplate(object):
    """
    The compiled template for one argument, eg. "x {abc} z".

    Fragments are grouped into pieces: consecutive literal and joined
    fragments form one argument, every split range forms its own run of
    arguments.
    """

    def __init__(self, arg: str):
        self.source = arg
        self.fragments: Tuple[Fragment, ...] = tuple(self._compile(arg))
        self.pieces = self._group(self.fragments)

    def __repr__(self):
        return "ArgTemplate({!r})".format(self.source)

    @staticmethod
    def _compile(arg):
        last = 0
        for mat in CMD_REGEX.finditer(arg):
            yield Literal(arg[last:mat.start()])
            yield parseFragment(mat.group(0))
            last = mat.end()
        yield Literal(arg[last:])

    @staticmethod
    def _group(fragments):
        pieces: List[Union[List[Fragment], SplitRange]] = []
        for frag in fragments:
            if isinstance(frag, SplitRange):
                pieces.append(frag)
            elif pieces and isinstance(pieces[-1], list):
                pieces[-1].append(frag)
            elif isinstance(frag, Literal) and not frag.text:
                continue
            else:
                pieces.append([frag])
        if not pieces:
            # An empty argument stays an (empty) argument.
            pieces.append([Literal("")])
        return tuple(tuple(piece) if isinstance(piece, list) else piece
                     for piece in pieces)

    def render(self, fields: FieldSet, separator: str = " ") -> List[str]:
        out = []
        for piece in self.pieces:
            if isinstance(piece, SplitRange):
                out.extend(_rangeValues(fields.groups, piece.left, piece.right))
            else:
                out.append("".join(self._value(frag, fields, separator)
                                   for frag in piece))
        return out

    @staticmethod
    def _value(frag, fields, separator):
        if isinstance(frag, Literal):
            return frag.text
        if isinstance(frag, Named):
            try:
                return fields[frag.name]
            except KeyError:
                raise RenderError("no field named {!r}".format(frag.name)) from None
        if isinstance(frag, Single):
            index = _translate(frag.index, len(fields.groups))
            try:
                return fields[index]
            except KeyError:
                raise RenderError("no field {} (record has {})".format(
                    frag.index, len(fields.groups))) from None
        sep = separator if frag.sep is None else frag.sep
        return sep.join(_rangeValues(fields.groups, frag.left, frag.right))


class Template(object):
    """A command template: the program followed by its argument templates."""

    def __init__(self, args: Sequence[str], separator: str = " "):
        if not args:
            raise ValueError("empty command template")
        self.args = tuple(ArgTemplate(arg) for arg in args)
        self.separator = separator

    def __repr__(self):
        return "Template({!r})".format([arg.source for arg in self.args])


def render(template: Template, fields: FieldSet) -> RenderedJob:
    """Render template against fields.  Raises RenderError."""
    argv = []
    for arg in template.args:
        argv.extend(arg.render(fields, template.separator))
    if not argv:
        raise RenderError("command renders to an empty argument list")
    record = fields.record
    return RenderedJob(record.sequence_number, tuple(argv), record)
