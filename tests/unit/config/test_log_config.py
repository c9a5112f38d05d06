"""Tests for console logging setup."""

from __future__ import annotations

import logging
import unittest

from ketra.log_config import LOGGER_NAME, setup_logging


class SetupLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        self._saved = (list(logger.handlers), logger.level, logger.propagate)
        logger.handlers.clear()

    def tearDown(self) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        handlers, level, propagate = self._saved
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_repeated_calls_do_not_duplicate_handlers(self) -> None:
        logger = setup_logging(logging.INFO)
        setup_logging("debug")
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)


if __name__ == "__main__":
    unittest.main()
