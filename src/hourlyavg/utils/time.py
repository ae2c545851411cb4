from __future__ import annotations

import re
from datetime import datetime, timezone

_RFC3339 = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})"
)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp; an explicit offset or ``Z`` is required."""
    text = str(value).strip()
    if not _RFC3339.fullmatch(text):
        raise ValueError(f"not an RFC3339 timestamp: {value!r}")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_rfc3339(value: datetime) -> str:
    """Render ``value`` in UTC with a trailing ``Z`` and whole seconds."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
