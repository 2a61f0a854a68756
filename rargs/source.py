"""
Record source: splits an input byte stream into Records.
"""

import logging
from typing import BinaryIO, Iterator, Union

from .domain import Record

LOG = logging.getLogger(__name__)
CHUNK_SIZE = 64 * 1024


class InputError(Exception):
    """Reading or decoding the input failed; the run cannot continue."""


class RecordReader(object):
    """
    Lazily yields Records from a binary stream.

    The sequence is not restartable.  Sequence numbers start at 0 and have
    no gaps.  A trailing chunk without a delimiter is still emitted unless
    emitUnterminated is False.
    """

    def __init__(self, stream: BinaryIO, delimiter: Union[str, bytes] = b"\n",
                 stripTrailingNewline: bool = True, emitUnterminated: bool = True,
                 encoding: str = "utf-8"):
        if isinstance(delimiter, str):
            delimiter = delimiter.encode(encoding)
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self._stream = stream
        self._delimiter = delimiter
        self._strip = stripTrailingNewline
        self._emitUnterminated = emitUnterminated
        self._encoding = encoding
        self._count = 0
        # read1 returns whatever is available, so records from a pipe are
        # seen as soon as they are written.
        self._readChunk = getattr(stream, "read1", stream.read)
        self._chunks = self._split()

    @property
    def count(self):
        """Number of records emitted so far."""
        return self._count

    def __iter__(self) -> Iterator[Record]:
        return self

    def __next__(self) -> Record:
        raw = next(self._chunks)
        record = Record(self._count, self._decode(raw))
        self._count += 1
        return record

    def _read(self):
        try:
            return self._readChunk(CHUNK_SIZE)
        except OSError as error:
            LOG.debug("read failed after %d records", self._count, exc_info=True)
            raise InputError("error reading input: {}".format(error)) from error

    def _split(self):
        delim = self._delimiter
        pending = bytearray()
        for hunk in iter(self._read, b""):
            # Only the tail that could hold a delimiter spanning the old
            # data and the new hunk needs to be searched again.
            search = max(0, len(pending) - len(delim) + 1)
            pending += hunk
            start = 0
            while True:
                idx = pending.find(delim, search)
                if idx < 0:
                    break
                end = idx + len(delim)
                yield self._trim(pending[start:end], terminated=True)
                start = search = end
            del pending[:start]
        if pending:
            if self._emitUnterminated:
                yield self._trim(pending, terminated=False)
            else:
                LOG.info("dropping unterminated final record (%d bytes)", len(pending))

    def _trim(self, raw, terminated):
        if not self._strip:
            return raw
        if terminated:
            raw = raw[:-len(self._delimiter)]
        # A CR left over from CRLF line endings is not part of the record.
        if self._delimiter == b"\n" and raw.endswith(b"\r"):
            raw = raw[:-1]
        elif not terminated and raw.endswith(b"\r\n"):
            raw = raw[:-2]
        elif not terminated and raw.endswith(b"\n"):
            raw = raw[:-1]
        return raw

    def _decode(self, raw):
        try:
            return raw.decode(self._encoding)
        except UnicodeDecodeError as error:
            raise InputError(
                "record {} is not valid {}: {}".format(
                    self._count, self._encoding, error)) from error
