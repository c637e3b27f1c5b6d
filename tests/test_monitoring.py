from __future__ import annotations

import json
import logging
import unittest

from nsd.monitoring.logging import JsonFormatter, configure_logging
from nsd.monitoring.stats import LoadStats


class JsonFormatterTests(unittest.TestCase):
    def test_context_is_merged_into_payload(self) -> None:
        record = logging.LogRecord("nsd.loader", logging.INFO, __file__, 1, "loaded %s", ("v1.0-mini",), None)
        record.context = {"version": "v1.0-mini", "scenes": 10}

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "loaded v1.0-mini")
        self.assertEqual(payload["logger"], "nsd.loader")
        self.assertEqual(payload["scenes"], 10)

    def test_configure_logging_replaces_handlers(self) -> None:
        logger = configure_logging("DEBUG", json_logs=True, logger_name="nsd.test-config")
        configure_logging("DEBUG", json_logs=True, logger_name="nsd.test-config")

        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0].formatter, JsonFormatter)
        self.assertFalse(logger.propagate)
        logger.handlers.clear()


class LoadStatsTests(unittest.TestCase):
    def test_phases_are_recorded(self) -> None:
        stats = LoadStats("v1.0-mini")
        with stats.phase("read"):
            pass
        with stats.phase("index"):
            pass

        with self.assertLogs("nsd.stats", level="INFO") as logs:
            snapshot = stats.emit({"scene": 2, "sample": 7})

        self.assertEqual(list(snapshot.phases), ["read", "index"])
        self.assertGreaterEqual(snapshot.total_seconds, 0.0)
        self.assertEqual(snapshot.counts["sample"], 7)
        self.assertIn("samples=7", logs.output[0])

    def test_phase_recorded_when_it_fails(self) -> None:
        stats = LoadStats("v1.0-mini")
        with self.assertRaises(RuntimeError):
            with stats.phase("chains"):
                raise RuntimeError("boom")

        self.assertIn("chains", stats.snapshot().phases)


if __name__ == "__main__":
    unittest.main()
