import datetime
import errno
import logging
import os
import signal

import chardet
import dateutil.tz

LOG = logging.getLogger(__name__)


def strForEach(value):
    try:
        return str(value)
    except (UnicodeDecodeError, UnicodeEncodeError):
        LOG.debug("%r", value, exc_info=1)
        return '{!r}'.format(value)


def sprint(*args, **kwargs):
    """sprint: "safe" print - ignore IOError"""
    try:
        print(*list(map(strForEach, args)), **kwargs)
    except IOError:
        LOG.debug("sprint ignore IOError", exc_info=1)
    except (UnicodeEncodeError, UnicodeDecodeError):
        print('codec error', repr(args))
        LOG.debug("%r", args, exc_info=1)
    except BaseException:
        LOG.debug("sprint caught error", exc_info=1)
        raise


def swrite(stream, data):
    """Write raw bytes to a text stream's buffer, ignoring a closed pipe."""
    if not data:
        return
    try:
        stream.flush()
        buf = getattr(stream, "buffer", None)
        if buf is None:
            stream.write(autoDecode(data))
        else:
            buf.write(data)
            buf.flush()
    except IOError:
        LOG.debug("swrite ignore IOError", exc_info=1)


def utcNow():
    return datetime.datetime.now(dateutil.tz.tzutc())


def signalName(signum):
    try:
        return signal.Signals(signum).name
    except ValueError:
        return "signal {}".format(signum)


def signalProcGroup(pgrp, signum):
    """
    Send signum to the process group.  Returns True if the group is known to
    be gone already.
    """
    try:
        os.killpg(pgrp, signum)
    except OSError as err:
        if err.errno == errno.ESRCH:
            # no such process -> it's done!
            return True
        elif err.errno == errno.EPERM:
            # Operation not permitted
            LOG.warning("killpg %d %s -> not permitted", pgrp, signalName(signum))
            return False
        raise
    LOG.debug("killpg %d %s", pgrp, signalName(signum))
    return False


def tailBytes(data, limit):
    if limit is None or len(data) <= limit:
        return data
    return data[-limit:]


class TailBuffer(object):
    """
    Accumulates bytes written to it but holds on to no more than the last
    `limit` of them.  A limit of None keeps everything.
    """

    def __init__(self, limit=None):
        self.limit = limit
        self.total = 0
        self.peak = 0
        self._data = bytearray()

    def write(self, chunk):
        self.total += len(chunk)
        if self.limit is not None:
            chunk = tailBytes(chunk, self.limit)
            overflow = len(self._data) + len(chunk) - self.limit
            if overflow > 0:
                del self._data[:overflow]
        self._data += chunk
        self.peak = max(self.peak, len(self._data))

    def __len__(self):
        return len(self._data)

    def getvalue(self):
        return bytes(self._data)


def autoDecode(byteArray):
    if not byteArray:
        return ""
    detected = chardet.detect(byteArray)
    encoding = detected['encoding']
    if encoding is None or detected['confidence'] < 0.5:  # very arbitrary
        encoding = 'utf-8'
    return byteArray.decode(encoding, errors='replace')


def robotLine(*info):
    msg = []
    for item in info:
        if isinstance(item, dict):
            for key, val in item.items():
                msg.append('{}={}'.format(key, val))
        else:
            msg.append(str(item))
    return '\x00'.join(msg)
