import json
import os
import sys
import tempfile
import unittest
from unittest.mock import Mock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrvreport.config import ReportConfig, load_config
from hrvreport.notifications import (
    CollectingNotifier,
    LoggingNotifier,
    Severity,
    safe_notify,
)


class TestReportConfig(unittest.TestCase):

    def test_defaults(self):
        config = ReportConfig()
        self.assertEqual(config.synthetic_step_ms, 1000)
        self.assertEqual(config.state_collection, "reportState")
        self.assertEqual(config.report_key, "hrvReportPages")
        self.assertEqual(config.dataset_key, "hrvPrintData")
        self.assertEqual(
            config.session_collections,
            {"restSessionsFree": "Simple", "restSessionsAdvanced": "Advanced"},
        )

    def test_validation(self):
        for kwargs in (
            {"synthetic_step_ms": 0},
            {"resampling_rate_hz": -1.0},
            {"page_orientation": "diagonal"},
            {"session_collections": {}},
        ):
            with self.assertRaises(ValueError):
                ReportConfig(**kwargs)

    def test_to_dict(self):
        self.assertEqual(ReportConfig().to_dict()["histogram_rule"], "sqrt")


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "config.json")

    def tearDown(self):
        import shutil

        shutil.rmtree(self.temp_dir)

    def write(self, payload):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)

    def test_file_and_overrides(self):
        self.write({"histogram_rule": "sturges", "comprehensive_recent_limit": 3})
        config = load_config(self.path, comprehensive_recent_limit=10, user_id=None)

        self.assertEqual(config.histogram_rule, "sturges")
        self.assertEqual(config.comprehensive_recent_limit, 10)
        self.assertIsNone(config.user_id)

    def test_unknown_keys(self):
        self.write({"histogram_bins": 12})
        with self.assertRaises(ValueError):
            load_config(self.path)

    def test_not_an_object(self):
        self.write([1, 2, 3])
        with self.assertRaises(ValueError):
            load_config(self.path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(os.path.join(self.temp_dir, "missing.json"))

    def test_environment_variable(self):
        self.write({"page_orientation": "landscape"})
        with patch.dict(os.environ, {"HRVREPORT_CONFIG": self.path}):
            self.assertEqual(load_config().page_orientation, "landscape")

    def test_defaults_without_file(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(load_config(), ReportConfig())


class TestNotifications(unittest.TestCase):

    def test_collecting_notifier(self):
        notifier = CollectingNotifier()
        notifier.notify("Loaded 4 RR intervals.", Severity.SUCCESS, 3000)
        notifier.notify("Skipped 3 invalid entries.")

        self.assertEqual(notifier.by_severity(Severity.SUCCESS), ["Loaded 4 RR intervals."])
        self.assertEqual(notifier.messages[1][1], Severity.INFO)
        notifier.clear()
        self.assertEqual(notifier.messages, [])

    def test_logging_notifier(self):
        with self.assertLogs("hrvreport.notifications", level="WARNING") as logs:
            LoggingNotifier().notify("Careful", Severity.WARNING)
        self.assertIn("[warning] Careful", logs.output[0])

    def test_safe_notify_swallows_sink_failure(self):
        sink = Mock()
        sink.notify.side_effect = RuntimeError("toast service down")
        safe_notify(sink, "hello", Severity.ERROR, 3000)
        sink.notify.assert_called_once_with("hello", Severity.ERROR, 3000)


if __name__ == "__main__":
    unittest.main()
