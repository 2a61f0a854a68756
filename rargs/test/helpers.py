from contextlib import contextmanager
import io
import os
import sys

from rargs.config import RunConfig

HOME = '/home/me'


def resetEnv():
    os.environ['HOME'] = HOME
    os.environ['RARGS_STATE_DIR'] = '/tmp/BADDIR'


class BytesOut(io.StringIO):
    """A text stream with a bytes buffer, like sys.stdout."""

    def __init__(self):
        super().__init__()
        self.buffer = io.BytesIO()

    def data(self):
        return self.buffer.getvalue() + self.getvalue().encode('utf-8')


@contextmanager
def capturedOutput():
    ''' Used to capture stdout or stderr.
    eg.
    with capturedOutput() as (out, err):
        print("foo")

    self.assertEqual(out.getvalue(), "foo")
    '''
    newOut, newErr = BytesOut(), BytesOut()
    oldOut, oldErr = sys.stdout, sys.stderr
    try:
        sys.stdout, sys.stderr = newOut, newErr
        yield sys.stdout, sys.stderr
    finally:
        sys.stdout, sys.stderr = oldOut, oldErr


def stdin(text):
    if isinstance(text, str):
        text = text.encode('utf-8')
    return io.BytesIO(text)


def runConfig(*template, **kwargs):
    kwargs.setdefault('killGrace', 1.0)
    return RunConfig(template=tuple(template), **kwargs)


def sh(script):
    return ('sh', '-c', script)
