"""
Index Builder: derives the lookup structures the query service reads.

Three indexes are built once over the loaded categories:
  • by_id        requirement id  → (requirement, owning category)
  • by_category  lowercased name and id → category
  • search       token → set of requirement ids (size-capped)

They are never authoritative; ``build_indexes`` can rebuild them from
the same categories at any time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, NamedTuple

from asvs_mcp.config import SecurityLimits
from asvs_mcp.engine.tokenizer import iter_tokens
from asvs_mcp.models.schemas import Category, Requirement

logger = logging.getLogger(__name__)


class IndexedRequirement(NamedTuple):
    requirement: Requirement
    category: Category


@dataclass
class DatasetIndex:
    by_id: dict[str, IndexedRequirement] = field(default_factory=dict)
    by_category: dict[str, Category] = field(default_factory=dict)
    search: dict[str, set[str]] = field(default_factory=dict)
    max_cache_entries: int = 0
    cache_limit_reached: bool = False

    @property
    def utilization_percent(self) -> int:
        if self.max_cache_entries <= 0:
            return 0
        return round(len(self.search) / self.max_cache_entries * 100)


def build_requirement_index(categories: Iterable[Category]) -> dict[str, IndexedRequirement]:
    """Duplicate ids are not expected; if one occurs the later entry wins."""
    index: dict[str, IndexedRequirement] = {}
    for category in categories:
        for req in category.requirements:
            if req.id in index:
                logger.debug(f"[Index] Duplicate requirement id {req.id!r}; later entry wins")
            index[req.id] = IndexedRequirement(req, category)
    return index


def build_category_index(categories: Iterable[Category]) -> dict[str, Category]:
    index: dict[str, Category] = {}
    for category in categories:
        index[category.name.lower()] = category
        index[category.id.lower()] = category
    return index


def requirement_tokens(req: Requirement, max_tokenize_length: int) -> list[str]:
    """Distinct tokens of description, category, id and weakness refs, in that order."""
    sources = [req.description, req.category, req.id, *req.cwe]
    tokens: dict[str, None] = {}
    for text in sources:
        for token in iter_tokens(text, max_tokenize_length):
            tokens[token] = None
    return list(tokens)


def build_search_index(
    categories: Iterable[Category],
    max_cache_entries: int,
    max_tokenize_length: int,
) -> tuple[dict[str, set[str]], bool]:
    """
    Build the inverted token index.

    Returns ``(index, cache_limit_reached)``.  Once the number of distinct
    tokens reaches ``max_cache_entries`` the whole remaining pass is
    abandoned and the partial index is kept, so search becomes a
    best-effort subset.
    """
    index: dict[str, set[str]] = {}

    for category in categories:
        for req in category.requirements:
            for token in requirement_tokens(req, max_tokenize_length):
                ids = index.get(token)
                if ids is None:
                    if len(index) >= max_cache_entries:
                        logger.warning(
                            f"[Index] Search index cache limit reached: limit={max_cache_entries}, "
                            f"size={len(index)}, stopped at requirement {req.id!r}"
                        )
                        return index, True
                    ids = index[token] = set()
                ids.add(req.id)

    return index, False


def build_indexes(categories: list[Category], limits: SecurityLimits) -> DatasetIndex:
    """Build all three indexes over ``categories``."""
    search, limit_reached = build_search_index(
        categories, limits.max_cache_entries, limits.max_tokenize_length
    )
    indexes = DatasetIndex(
        by_id=build_requirement_index(categories),
        by_category=build_category_index(categories),
        search=search,
        max_cache_entries=limits.max_cache_entries,
        cache_limit_reached=limit_reached,
    )
    logger.info(
        f"[Index] Built indexes: {len(indexes.by_id)} requirements, "
        f"{len(categories)} categories, {len(search)} tokens "
        f"({indexes.utilization_percent}% of cache limit {limits.max_cache_entries})"
        + ("; DEGRADED, search results are a partial subset" if limit_reached else "")
    )
    return indexes
