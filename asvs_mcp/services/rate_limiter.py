"""
Rate Limiter: sliding-window admission control per caller identity.

Timestamps are pruned lazily on access; there is no background sweep.
An identity that stops calling keeps its last window of timestamps
until its next call or ``reset()``, so memory is bounded by
(distinct identities x max_requests).

Not thread-safe: the server dispatches one tool call at a time.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` calls per identity in any ``window_ms``."""

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._clock = clock
        self._requests: dict[str, list[float]] = {}

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _recent(self, identity: str, now: float) -> list[float]:
        return [t for t in self._requests.get(identity, []) if now - t < self.window_ms]

    def allow(self, identity: str) -> bool:
        """Record and admit the call, or reject it without recording."""
        now = self._now_ms()
        recent = self._recent(identity, now)

        if len(recent) >= self.max_requests:
            self._requests[identity] = recent
            return False

        recent.append(now)
        self._requests[identity] = recent
        return True

    def current_count(self, identity: str) -> int:
        return len(self._recent(identity, self._now_ms()))

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.window_ms / 1000)

    def reset(self) -> None:
        """Clear all state (tests and operators only)."""
        self._requests.clear()
        logger.debug("[RateLimiter] State cleared")
