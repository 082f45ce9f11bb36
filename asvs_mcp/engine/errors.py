"""
Query error taxonomy.

Operations raise these internally; the query service turns every one of
them into a structured error result.  ``message`` is what the caller
sees; ``internal_detail`` is only ever logged.
"""

from __future__ import annotations

from typing import Any, Optional

from asvs_mcp.models.enums import ErrorKind
from asvs_mcp.utils.sanitize import strip_control_chars

MAX_ERROR_MESSAGE = 200

DEFAULT_HINT = "Use 'get_category_summary' to see available options"


class QueryError(Exception):
    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, internal_detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.internal_detail = internal_detail


class InvalidArgumentError(QueryError):
    kind = ErrorKind.INVALID_ARGUMENT


class NotFoundError(QueryError):
    kind = ErrorKind.NOT_FOUND


def error_result(
    kind: ErrorKind,
    message: str,
    hint: str = DEFAULT_HINT,
    **extra: Any,
) -> dict[str, Any]:
    """Build the caller-visible error payload. Success payloads never carry ``error``."""
    return {
        "error": strip_control_chars(message, MAX_ERROR_MESSAGE),
        "error_type": kind.value,
        "hint": hint,
        **extra,
    }
