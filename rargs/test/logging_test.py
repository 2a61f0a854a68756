import logging
import os
import tempfile
import unittest

from rargs.logging import getLogger, setup


class TestLoggingSetup(unittest.TestCase):
    def setUp(self):
        # Reset logging configuration before each test
        logging.root.handlers = []
        logging.root.setLevel(logging.WARNING)

    def tearDown(self):
        for handler in logging.root.handlers:
            handler.close()
        logging.root.handlers = []

    def test_setup_no_debug(self):
        """Test setup with debug=False logs errors to stderr"""
        setup("", "test-debug.log", debug=False)
        self.assertTrue(
            any(isinstance(h, logging.StreamHandler) and
                not isinstance(h, logging.FileHandler)
                for h in logging.root.handlers))
        self.assertEqual(logging.ERROR, logging.root.level)

    def test_setup_verbose(self):
        setup("", "test-debug.log", verbose=1)
        self.assertEqual(logging.INFO, logging.root.level)

    def test_setup_very_verbose(self):
        setup("", "test-debug.log", verbose=2)
        self.assertEqual(logging.DEBUG, logging.root.level)

    def test_setup_debug_true(self):
        """Test setup with debug=True uses the default log file"""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup(tmpdir, "test-debug.log", debug=True)
            self.assertTrue(
                any(isinstance(h, logging.FileHandler)
                    for h in logging.root.handlers))
            self.assertEqual(logging.DEBUG, logging.root.level)
            self.assertTrue(os.path.exists(os.path.join(tmpdir, "test-debug.log")))

    def test_setup_debug_with_custom_file(self):
        """Test setup with debug=/path/to/file uses that file"""
        with tempfile.TemporaryDirectory() as tmpdir:
            customLog = os.path.join(tmpdir, "custom-debug.log")
            setup(tmpdir, "default-debug.log", debug=customLog)
            getLogger("rargs.test").debug("hello from the test")
            for handler in logging.root.handlers:
                handler.flush()
            self.assertFalse(os.path.exists(os.path.join(tmpdir, "default-debug.log")))
            with open(customLog) as logFp:
                self.assertIn("hello from the test", logFp.read())
