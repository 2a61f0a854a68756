import os
import time
from unittest import TestCase

from pexpect import EOF

from .integration_lib import rargsCmd, setUpModuleHelper, spawn, tempEnv, waitFor


def setUpModule():
    setUpModuleHelper()


class TestInterrupt(TestCase):
    def testInterruptStopsJobs(self):
        with tempEnv() as env:
            child = spawn(rargsCmd(
                '-j', '2', 'sh', '-c', 'touch "$0"; sleep 30',
                env.path('{}')))
            child.sendline('first')
            child.sendline('second')
            waitFor(lambda: all(os.path.exists(env.path(name))
                                for name in ('first', 'second')))
            start = time.monotonic()
            child.sendintr()
            child.expect(EOF, timeout=20)
            child.close()
            self.assertLess(time.monotonic() - start, 20)
            self.assertEqual(130, child.exitstatus)
