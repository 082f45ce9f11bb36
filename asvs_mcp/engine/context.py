"""
ServerContext: everything a tool call may read, built once at startup.

The categories and indexes are immutable after construction and safe to
share between readers.  The rate limiter is the only per-call mutable
state; it assumes calls are dispatched one at a time, so a host that
parallelizes calls must confine it to a single worker or add a lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from asvs_mcp.config import SecurityLimits, Settings
from asvs_mcp.engine.indexes import DatasetIndex, build_indexes
from asvs_mcp.models.enums import DataSource
from asvs_mcp.models.schemas import Category
from asvs_mcp.services.rate_limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@dataclass
class ServerContext:
    settings: Settings
    categories: list[Category]
    indexes: DatasetIndex
    rate_limiter: Optional[SlidingWindowRateLimiter] = None
    data_source: DataSource = DataSource.LOCAL
    cross_reference_count: int = 0

    @property
    def limits(self) -> SecurityLimits:
        return self.settings.limits

    def rebuild_indexes(self) -> None:
        """Re-derive the indexes from the (unchanged) categories."""
        self.indexes = build_indexes(self.categories, self.limits)


def build_context(
    categories: list[Category],
    settings: Settings,
    data_source: DataSource = DataSource.LOCAL,
    cross_reference_count: int = 0,
    rate_limiter: Optional[SlidingWindowRateLimiter] = None,
) -> ServerContext:
    """
    Index ``categories`` and wire up the rate limiter.

    ``categories`` must already be validated and enriched; nothing
    modifies them after this point.  When ``rate_limiter`` is not given
    one is created from settings (or none, if rate limiting is disabled).
    """
    if rate_limiter is None and settings.rate_limit:
        rate_limiter = SlidingWindowRateLimiter(
            window_ms=settings.rate_limit_window_ms,
            max_requests=settings.rate_limit_requests,
        )

    context = ServerContext(
        settings=settings,
        categories=list(categories),
        indexes=build_indexes(categories, settings.limits),
        rate_limiter=rate_limiter,
        data_source=data_source,
        cross_reference_count=cross_reference_count,
    )
    logger.info(
        f"[Context] Ready: tier={settings.security_tier.value}, source={data_source.value}, "
        f"rate_limit={'on' if rate_limiter else 'off'}"
    )
    return context
