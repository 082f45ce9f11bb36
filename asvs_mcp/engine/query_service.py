"""
ASVSQueryService: the ONLY class the transport layer talks to.

This is the facade over:
  • ServerContext   (categories, prebuilt indexes, rate limiter)
  • PriorityRules   (recommendation and compliance-gap scoring)
  • AuditService    (tool invocation trail)

Every tool returns a plain, JSON-serializable dict.  Bad input never
raises out of this class: it becomes a result carrying ``error`` and
``error_type``, with the full reason sent to the log only.

Usage:
    service = ASVSQueryService(context)
    service.get_requirement_details(requirement_id="V6.2.1")
    service.call_tool("search_requirements", {"query": "password"})
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

from asvs_mcp.engine.context import ServerContext
from asvs_mcp.engine.errors import (
    InvalidArgumentError,
    NotFoundError,
    QueryError,
    error_result,
)
from asvs_mcp.engine.indexes import IndexedRequirement
from asvs_mcp.engine.pagination import paginate
from asvs_mcp.engine.rules import PriorityRules
from asvs_mcp.engine.tokenizer import tokenize
from asvs_mcp.models.arguments import (
    CategoryQuery,
    ComplianceQuery,
    GapAnalysisQuery,
    LevelQuery,
    RecommendationQuery,
    RequirementLookup,
    SearchQuery,
)
from asvs_mcp.models.enums import ComplianceFramework, ErrorKind, Priority
from asvs_mcp.models.schemas import Category, Requirement
from asvs_mcp.services.audit_service import AuditService
from asvs_mcp.utils.sanitize import sanitize_for_log

logger = logging.getLogger(__name__)

CATEGORY_NOT_FOUND = "Category not found. Please check the category name."
RATE_LIMITED = "Rate limit exceeded. Please try again later."


def coverage_percentage(implemented: int, total: int) -> int:
    """Round half up, 0 when nothing applies."""
    if total <= 0:
        return 0
    return math.floor(implemented * 100 / total + 0.5)


def _level_label(level: int) -> str:
    return f"L{level}"


def _invalid_fields(exc: ValidationError) -> list[str]:
    fields: dict[str, None] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        if loc:
            fields[str(loc[0])] = None
    return list(fields)


class ASVSQueryService:
    """Read-only query tools over one ServerContext."""

    def __init__(
        self,
        context: ServerContext,
        rules: PriorityRules | None = None,
        audit: AuditService | None = None,
    ):
        self.context = context
        self.rules = rules or PriorityRules()
        self.audit = audit or AuditService()

        self._tools: dict[str, tuple[Optional[type[BaseModel]], Callable[..., dict[str, Any]]]] = {
            "get_requirements_by_level": (LevelQuery, self._by_level),
            "get_requirements_by_category": (CategoryQuery, self._by_category),
            "get_requirement_details": (RequirementLookup, self._details),
            "search_requirements": (SearchQuery, self._search),
            "recommend_priority_controls": (RecommendationQuery, self._recommend),
            "get_category_summary": (None, self._category_summary),
            "get_compliance_requirements": (ComplianceQuery, self._compliance),
            "get_compliance_gap_analysis": (GapAnalysisQuery, self._gap_analysis),
            "map_requirement_to_compliance": (RequirementLookup, self._map_to_compliance),
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    # ── Dispatch ─────────────────────────────────────────

    def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        client_id: str = "default",
    ) -> dict[str, Any]:
        """
        Entry point for the transport: rate-limit, audit, run, attach ``_meta``.
        """
        request_id = str(uuid.uuid4())
        limiter = self.context.rate_limiter

        if limiter is not None and not limiter.allow(client_id):
            current = limiter.current_count(client_id)
            window_s = limiter.window_ms / 1000
            logger.warning(
                f"[RateLimit] Rejected {sanitize_for_log(name)} request_id={request_id}: "
                f"{current}/{limiter.max_requests} requests in {window_s:g}s window"
            )
            result = error_result(
                ErrorKind.RATE_LIMITED,
                RATE_LIMITED,
                hint=f"Maximum {limiter.max_requests} requests per {window_s:g} seconds",
                retry_after=limiter.retry_after_seconds,
            )
            return self._with_meta(result, request_id)

        self.audit.record(request_id, name, arguments, client_id)
        return self._with_meta(self._run(name, arguments), request_id)

    def _run(self, tool: str, arguments: Any) -> dict[str, Any]:
        registered = self._tools.get(tool)
        if registered is None:
            return self._fail(
                str(tool),
                InvalidArgumentError("Unknown tool.", internal_detail=f"Unknown tool {tool!r}"),
            )

        model, handler = registered
        try:
            if model is None:
                return handler()
            args = model.model_validate({} if arguments is None else arguments)
            return handler(args)
        except ValidationError as e:
            fields = _invalid_fields(e)
            if fields:
                message = "Invalid value for " + ", ".join(f"'{f}'" for f in fields) + "."
            else:
                message = "Invalid arguments."
            return self._fail(tool, InvalidArgumentError(message, internal_detail=str(e)))
        except QueryError as e:
            return self._fail(tool, e)

    def _fail(self, tool: str, error: QueryError) -> dict[str, Any]:
        logger.warning(
            f"[{sanitize_for_log(tool)}] {error.kind.value}: {sanitize_for_log(error.message)}"
            + (f" | detail: {sanitize_for_log(error.internal_detail)}" if error.internal_detail else "")
        )
        return error_result(error.kind, error.message)

    def _with_meta(self, result: dict[str, Any], request_id: str) -> dict[str, Any]:
        ctx = self.context
        result["_meta"] = {
            "request_id": request_id,
            "data_source": ctx.data_source.value,
            "version": ctx.settings.asvs_version,
            "cross_references_loaded": ctx.cross_reference_count,
            "search_index_degraded": ctx.indexes.cache_limit_reached,
        }
        return result

    # ── Public tool API (no rate limiting) ───────────────

    def get_requirements_by_level(self, level: int, offset: int = 0, limit: int = 100) -> dict[str, Any]:
        return self._run("get_requirements_by_level", {"level": level, "offset": offset, "limit": limit})

    def get_requirements_by_category(
        self,
        category: str,
        level: int | None = None,
        offset: int = 0,
        limit: int = 100,
    ) -> dict[str, Any]:
        return self._run(
            "get_requirements_by_category",
            {"category": category, "level": level, "offset": offset, "limit": limit},
        )

    def get_requirement_details(self, requirement_id: str) -> dict[str, Any]:
        return self._run("get_requirement_details", {"requirement_id": requirement_id})

    def search_requirements(
        self,
        query: str,
        level: int | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> dict[str, Any]:
        return self._run(
            "search_requirements",
            {"query": query, "level": level, "offset": offset, "limit": limit},
        )

    def recommend_priority_controls(
        self,
        target_level: int,
        current_level: int = 0,
        focus_areas: list[str] | None = None,
        application_type: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> dict[str, Any]:
        return self._run(
            "recommend_priority_controls",
            {
                "target_level": target_level,
                "current_level": current_level,
                "focus_areas": focus_areas or [],
                "application_type": application_type,
                "offset": offset,
                "limit": limit,
            },
        )

    def get_category_summary(self) -> dict[str, Any]:
        return self._run("get_category_summary", {})

    def get_compliance_requirements(
        self,
        framework: str,
        level: int | None = None,
        offset: int = 0,
        limit: int = 100,
    ) -> dict[str, Any]:
        return self._run(
            "get_compliance_requirements",
            {"framework": framework, "level": level, "offset": offset, "limit": limit},
        )

    def get_compliance_gap_analysis(
        self,
        frameworks: list[str],
        target_level: int,
        implemented_requirements: list[str] | None = None,
    ) -> dict[str, Any]:
        return self._run(
            "get_compliance_gap_analysis",
            {
                "frameworks": frameworks,
                "target_level": target_level,
                "implemented_requirements": implemented_requirements or [],
            },
        )

    def map_requirement_to_compliance(self, requirement_id: str) -> dict[str, Any]:
        return self._run("map_requirement_to_compliance", {"requirement_id": requirement_id})

    # ── Shared helpers ───────────────────────────────────

    def _requirements(self) -> list[Requirement]:
        """Every requirement of every category, in load order."""
        return [req for category in self.context.categories for req in category.requirements]

    def _check_length(self, value: str, limit: int, what: str) -> None:
        if len(value) > limit:
            raise InvalidArgumentError(
                f"{what} too long (max {limit} characters)",
                internal_detail=f"{what} length {len(value)} exceeds {limit}",
            )

    def _lookup(self, requirement_id: str) -> IndexedRequirement:
        self._check_length(requirement_id, self.context.limits.max_id_length, "Requirement ID")
        entry = self.context.indexes.by_id.get(requirement_id)
        if entry is None:
            raise NotFoundError(f"Requirement '{requirement_id}' not found.")
        return entry

    def resolve_category(self, name: str) -> Category | None:
        """
        Exact match on lowercased name or id first.  Otherwise the first
        index key, in load order (each category's name before its id),
        that contains the input or is contained by it.  Ambiguous
        substrings therefore resolve to the earliest-loaded category.
        """
        normalized = name.strip().lower()
        index = self.context.indexes.by_category

        category = index.get(normalized)
        if category is not None:
            return category

        if not normalized:
            return None
        for key, candidate in index.items():
            if key and (normalized in key or key in normalized):
                return candidate
        return None

    # ── Tools ────────────────────────────────────────────

    def _by_level(self, args: LevelQuery) -> dict[str, Any]:
        matches = [r for r in self._requirements() if r.applies_to(args.level)]
        page = paginate(matches, args.offset, args.limit)
        return {
            "level": _level_label(args.level),
            **page.meta,
            "requirements": [r.model_dump() for r in page.items],
        }

    def _by_category(self, args: CategoryQuery) -> dict[str, Any]:
        self._check_length(args.category, self.context.limits.max_category_length, "Category name")

        category = self.resolve_category(args.category)
        if category is None:
            available = ", ".join(c.name for c in self.context.categories)
            raise NotFoundError(
                CATEGORY_NOT_FOUND,
                internal_detail=f"Category {args.category!r} not found. Available: {available}",
            )

        requirements = category.requirements
        if args.level is not None:
            requirements = [r for r in requirements if r.applies_to(args.level)]

        page = paginate(requirements, args.offset, args.limit)
        return {
            "category": category.name,
            "id": category.id,
            **page.meta,
            "requirements": [r.model_dump() for r in page.items],
        }

    def _details(self, args: RequirementLookup) -> dict[str, Any]:
        entry = self._lookup(args.requirement_id)
        return {
            "requirement": entry.requirement.model_dump(),
            "category_name": entry.category.name,
            "category_id": entry.category.id,
        }

    def _search(self, args: SearchQuery) -> dict[str, Any]:
        limits = self.context.limits
        self._check_length(args.query, limits.max_query_length, "Query")

        index = self.context.indexes.search
        matching: set[str] = set()
        for token in tokenize(args.query, limits.max_tokenize_length):
            matching.update(index.get(token, ()))

        # Unranked: results keep dataset load order.
        results = [
            r for r in self._requirements()
            if r.id in matching and (args.level is None or r.applies_to(args.level))
        ]

        page = paginate(results, args.offset, args.limit)
        return {
            "query": args.query,
            **page.meta,
            "partial_index": self.context.indexes.cache_limit_reached,
            "results": [r.model_dump() for r in page.items],
        }

    def _recommend(self, args: RecommendationQuery) -> dict[str, Any]:
        limits = self.context.limits
        for area in args.focus_areas:
            self._check_length(area, limits.max_category_length, "Focus area")
        if args.application_type is not None:
            self._check_length(args.application_type, limits.max_query_length, "Application type")

        focus = [area.lower() for area in args.focus_areas]
        ranked: list[tuple[Priority, Requirement]] = []

        for category in self.context.categories:
            name = category.name.lower()
            if focus and not any(area in name for area in focus):
                continue

            priority = self.rules.recommendation_priority(category.name)
            for req in category.requirements:
                if req.applies_to(args.target_level) and req.min_level > args.current_level:
                    ranked.append((priority, req))

        ranked.sort(key=lambda pair: (pair[0].rank, pair[1].min_level))

        page = paginate(ranked, args.offset, args.limit)
        return {
            "target_level": _level_label(args.target_level),
            "current_level": _level_label(args.current_level),
            "application_type": args.application_type,
            "focus_areas": list(args.focus_areas),
            **page.meta,
            "recommendations": [
                {**req.model_dump(), "priority": priority.value} for priority, req in page.items
            ],
        }

    def _category_summary(self) -> dict[str, Any]:
        summary = []
        for category in self.context.categories:
            counts = {1: 0, 2: 0, 3: 0}
            for req in category.requirements:
                for level in req.levels:
                    counts[level] += 1
            summary.append({
                "id": category.id,
                "name": category.name,
                "requirement_count": len(category.requirements),
                "l1_requirements": counts[1],
                "l2_requirements": counts[2],
                "l3_requirements": counts[3],
            })
        return {"total_categories": len(summary), "categories": summary}

    def _compliance(self, args: ComplianceQuery) -> dict[str, Any]:
        key = args.framework.value
        results = []
        for req in self._requirements():
            if args.level is not None and not req.applies_to(args.level):
                continue
            refs = req.compliance_refs(key)
            if refs:
                results.append({**req.model_dump(), "compliance_references": list(refs)})

        page = paginate(results, args.offset, args.limit)
        return {
            "framework": args.framework.display_name,
            "framework_key": key,
            "level": _level_label(args.level) if args.level is not None else "All levels",
            **page.meta,
            "requirements": page.items,
        }

    def _gap_analysis(self, args: GapAnalysisQuery) -> dict[str, Any]:
        max_id = self.context.limits.max_id_length
        for requirement_id in args.implemented_requirements:
            self._check_length(requirement_id, max_id, "Requirement ID")

        implemented_ids = set(args.implemented_requirements)
        frameworks = args.unique_frameworks()

        gaps: dict[str, list[dict[str, Any]]] = {f.value: [] for f in frameworks}
        totals = {f.value: 0 for f in frameworks}
        implemented = {f.value: 0 for f in frameworks}

        for req in self._requirements():
            if not req.applies_to(args.target_level):
                continue
            for framework in frameworks:
                key = framework.value
                refs = req.compliance_refs(key)
                if not refs:
                    continue
                totals[key] += 1
                if req.id in implemented_ids:
                    implemented[key] += 1
                else:
                    gaps[key].append({
                        "requirement_id": req.id,
                        "category": req.category,
                        "description": req.description,
                        "compliance_references": list(refs),
                        "priority": self.rules.gap_priority(req, key),
                    })

        for entries in gaps.values():
            entries.sort(key=lambda gap: gap["priority"].rank)
            for gap in entries:
                gap["priority"] = gap["priority"].value

        return {
            "target_level": _level_label(args.target_level),
            "frameworks_analyzed": [f.display_name for f in frameworks],
            "coverage_summary": [
                {
                    "framework": f.display_name,
                    "framework_key": f.value,
                    "total_requirements": totals[f.value],
                    "implemented": implemented[f.value],
                    "missing": totals[f.value] - implemented[f.value],
                    "coverage_percentage": coverage_percentage(implemented[f.value], totals[f.value]),
                }
                for f in frameworks
            ],
            "gaps": gaps,
        }

    def _map_to_compliance(self, args: RequirementLookup) -> dict[str, Any]:
        req = self._lookup(args.requirement_id).requirement

        mappings: dict[str, list[str]] = {}
        names: dict[str, str] = {}
        for framework in ComplianceFramework:
            refs = req.compliance_refs(framework.value)
            if refs:
                mappings[framework.value] = list(refs)
                names[framework.value] = framework.display_name

        total_refs = sum(len(refs) for refs in mappings.values())
        return {
            "requirement": {
                "id": req.id,
                "category": req.category,
                "description": req.description,
                "level": [_level_label(lvl) for lvl in req.levels],
            },
            "compliance_mappings": mappings,
            "framework_names": names,
            "total_framework_mappings": len(mappings),
            "total_control_references": total_refs,
            "compliance_impact": (
                "Implementing this requirement helps satisfy compliance obligations"
                if total_refs > 0
                else "No direct compliance mappings identified"
            ),
        }
