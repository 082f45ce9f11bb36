"""
Audit Service: records tool invocations for security monitoring.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any

from asvs_mcp.utils.sanitize import sanitize_for_log

logger = logging.getLogger(__name__)


class AuditService:
    """
    Logs every tool invocation with sanitized arguments and keeps the
    most recent ``max_entries`` in memory for inspection.
    """

    def __init__(self, max_entries: int = 1000):
        self._entries: deque[dict[str, Any]] = deque(maxlen=max_entries)

    def record(
        self,
        request_id: str,
        tool: str,
        arguments: dict[str, Any] | None = None,
        client_id: str = "default",
    ) -> dict[str, Any]:
        """Record a tool invocation and return the entry."""
        entry = {
            "request_id": request_id,
            "tool": sanitize_for_log(tool),
            "arguments": sanitize_for_log(arguments or {}),
            "client_id": sanitize_for_log(client_id),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self._entries.append(entry)
        logger.info(
            f"[AUDIT] Tool invocation {entry['tool']} "
            f"request_id={request_id} args={entry['arguments']}"
        )
        return entry

    def get_trail(self, tool: str | None = None) -> list[dict[str, Any]]:
        """Return recorded invocations, optionally for one tool."""
        if tool is None:
            return list(self._entries)
        return [e for e in self._entries if e["tool"] == tool]
