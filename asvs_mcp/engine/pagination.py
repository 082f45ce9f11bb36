"""
Pagination helper.  Never raises; always returns a valid window.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Sequence

MAX_PAGE_SIZE = 500


class Page(NamedTuple):
    items: list[Any]
    meta: dict[str, Any]


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def paginate(items: Sequence[Any], offset: Any = 0, limit: Any = 100) -> Page:
    """
    Slice ``items`` to one page.

    ``offset`` is clamped into [0, len(items)] and ``limit`` into
    [1, MAX_PAGE_SIZE]; the clamped values are reported in ``meta``.
    """
    total = len(items)
    safe_offset = max(0, min(_as_int(offset, 0), total))
    safe_limit = max(1, min(_as_int(limit, 100), MAX_PAGE_SIZE))

    window = list(items[safe_offset:safe_offset + safe_limit])

    return Page(
        items=window,
        meta={
            "offset": safe_offset,
            "limit": safe_limit,
            "total": total,
            "returned": len(window),
            "hasMore": safe_offset + len(window) < total,
        },
    )
