import logging
import os
import unittest
from unittest import mock

from json_doctor.config import configure_logging, debug_enabled


class DebugSwitchTest(unittest.TestCase):
    def test_debug_switch(self):
        with mock.patch.dict(os.environ, {"JSON_DOCTOR_DEBUG": "1"}):
            self.assertTrue(debug_enabled())
        with mock.patch.dict(os.environ, {"JSON_DOCTOR_DEBUG": "off"}):
            self.assertFalse(debug_enabled())
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertFalse(debug_enabled())


class ConfigureLoggingTest(unittest.TestCase):
    def setUp(self):
        self.logger = logging.getLogger("json_doctor")
        self.saved_handlers = list(self.logger.handlers)
        self.saved_level = self.logger.level

    def tearDown(self):
        self.logger.handlers = self.saved_handlers
        self.logger.setLevel(self.saved_level)

    def test_handler_added_once(self):
        configure_logging()
        configure_logging()
        ours = [h for h in self.logger.handlers if getattr(h, "_json_doctor", False)]
        self.assertEqual(len(ours), 1)
        self.assertEqual(self.logger.level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
