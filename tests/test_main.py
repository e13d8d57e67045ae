"""
Tests for the startup configuration summary.
"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch, call

from core.database import Database
from main import print_configuration
from memory.summary_cache import SummaryCache, SummaryRecord


class TestPrintConfiguration(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = Database(Path(self._tmp.name) / "main.db")
        self.db.initialize()

    def tearDown(self):
        self._tmp.cleanup()

    def test_cache_stats_are_reported(self):
        cache = SummaryCache(self.db)
        cache.put(SummaryRecord("b1", "c1", "One.", "deepseek", 1000))
        cache.put(SummaryRecord("b1", "c2", "Two.", "deepseek", 1000))
        cache.put(SummaryRecord("b2", "c1", "Three.", "glm", 1000))

        with patch("main.log_section"), patch("main.log_config") as log_config:
            print_configuration(self.db)

        self.assertIn(call("Cached summaries", "3 chapters in 2 books", indent=1), log_config.call_args_list)

    def test_empty_cache(self):
        with patch("main.log_section"), patch("main.log_config") as log_config:
            print_configuration(self.db)

        self.assertIn(call("Cached summaries", "0 chapters in 0 books", indent=1), log_config.call_args_list)


if __name__ == "__main__":
    unittest.main()
