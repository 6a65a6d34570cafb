import tempfile
import unittest
from datetime import datetime
from pathlib import Path

import run_tests_with_logs as runner


class TestRunTestsWithLogs(unittest.TestCase):
    NOW = datetime(2026, 2, 8, 13, 45, 7)

    def test_report_path_is_timestamped(self):
        path = runner._report_path(Path("tests") / "testlogs", self.NOW)
        self.assertEqual(
            path.name,
            "test_failures_20260208_134507.txt",
            "Failure log filename format mismatch. "
            "Fix: use test_failures_YYYYMMDD_HHMMSS.txt naming.",
        )

    def test_save_failure_report_creates_parent_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            report_dir = Path(tmp) / "nested" / "testlogs"
            path = runner.save_failure_report(report_dir, "example failure report", self.NOW)
            self.assertTrue(
                path.exists(),
                "Failure report file was not created. "
                "Fix: ensure save_failure_report() creates the directory and writes the file.",
            )
            self.assertEqual(path.read_text(encoding="utf-8"), "example failure report")

    def test_report_lists_summary_failed_tests_and_output(self):
        result = unittest.TestResult()
        result.testsRun = 1
        result.failures = [(self, "traceback")]

        report = runner.format_failure_report(result, "sample unittest output\n", self.NOW)

        self.assertIn("Timestamp: 2026-02-08T13:45:07", report)
        self.assertIn("Summary: ran=1, failures=1, errors=0", report)
        self.assertIn(f"  - {self.id()}", report)
        self.assertIn("Fix hint:", report)
        self.assertTrue(report.endswith("sample unittest output\n"))


if __name__ == "__main__":
    unittest.main()
