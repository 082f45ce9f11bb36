"""
Scrubbing for anything that reaches a log line or a caller-visible
error message.
"""

from __future__ import annotations

import json
import re
from typing import Any

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

MAX_LOG_STRING = 1000
MAX_LOG_STRUCTURE = 5000


def strip_control_chars(text: str, max_length: int) -> str:
    """Replace control characters (including newlines) with spaces and truncate."""
    return _CONTROL_CHARS.sub(" ", text)[:max_length]


def sanitize_for_log(data: Any) -> Any:
    """Return a log-safe rendering of ``data``; structures become a single line of JSON."""
    if data is None or isinstance(data, (bool, int, float)):
        return data
    if isinstance(data, str):
        return strip_control_chars(data, MAX_LOG_STRING)
    try:
        rendered = json.dumps(data, default=str)
    except (TypeError, ValueError):
        return "[unserializable]"
    return strip_control_chars(rendered, MAX_LOG_STRUCTURE)
