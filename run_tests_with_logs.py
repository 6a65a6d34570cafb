# To run:
# python run_tests_with_logs.py

from __future__ import annotations

import io
import sys
import unittest
from datetime import datetime
from pathlib import Path

from fabricator.logging_setup import setup_logging

REPORT_DIR = Path("tests") / "testlogs"


def _report_path(report_dir: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return report_dir / f"test_failures_{stamp}.txt"


def _failed_test_ids(result: unittest.TestResult) -> list[str]:
    return [test.id() if hasattr(test, "id") else str(test) for test, _tb in result.failures + result.errors]


def format_failure_report(result: unittest.TestResult, test_output: str, now: datetime | None = None) -> str:
    ts = (now or datetime.now()).isoformat(timespec="seconds")
    lines = [
        f"Timestamp: {ts}",
        f"Summary: ran={result.testsRun}, failures={len(result.failures)}, errors={len(result.errors)}",
        "Failed tests:",
    ]
    lines.extend(f"  - {test_id}" for test_id in _failed_test_ids(result))
    lines.append("Fix hint: read the tracebacks below, fix the fabricator module they point at, then rerun.")
    lines.append("")
    lines.append(test_output.rstrip())
    lines.append("")
    return "\n".join(lines)


def save_failure_report(report_dir: Path, content: str, now: datetime | None = None) -> Path:
    report_dir.mkdir(parents=True, exist_ok=True)
    path = _report_path(report_dir, now)
    path.write_text(content, encoding="utf-8")
    return path


def main(start_dir: str = "tests", pattern: str = "test_*.py") -> int:
    # keep generator INFO/DEBUG chatter out of the unittest transcript
    setup_logging("WARNING")

    suite = unittest.TestLoader().discover(start_dir=start_dir, pattern=pattern)
    stream = io.StringIO()
    result = unittest.TextTestRunner(stream=stream, verbosity=2).run(suite)

    test_output = stream.getvalue()
    sys.stdout.write(test_output)

    if result.wasSuccessful():
        print("All tests passed. No failure log written.")
        return 0

    path = save_failure_report(REPORT_DIR, format_failure_report(result, test_output))
    print(f"Test failures detected. Log written to: {path}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
