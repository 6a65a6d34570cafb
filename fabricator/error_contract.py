from __future__ import annotations

import re

__all__ = [
    "ACTIONABLE_ERROR_PATTERN",
    "format_actionable_error",
    "is_actionable_message",
]

ACTIONABLE_ERROR_PATTERN = re.compile(r"^[^\n]+: .+\. Fix: .+\.$", re.DOTALL)


def _clean(value: object, default: str) -> str:
    text = str(value).strip().rstrip(".")
    return text if text else default


def format_actionable_error(location: str, issue: str, hint: str) -> str:
    clean_location = _clean(location, "Unknown")
    clean_issue = _clean(issue, "unknown issue")
    clean_hint = _clean(hint, "review the schema definition and retry")
    return f"{clean_location}: {clean_issue}. Fix: {clean_hint}."


def is_actionable_message(message: str) -> bool:
    return bool(ACTIONABLE_ERROR_PATTERN.match(str(message).strip()))
