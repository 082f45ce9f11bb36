"""
MCP transport: registers the query tools on a FastMCP server.

Each tool is a thin wrapper that forwards its arguments to
``ASVSQueryService.call_tool`` and returns the resulting dict, so rate
limiting, auditing, and error shaping all happen in one place.

Run over stdio:
    python -m asvs_mcp

Dev with MCP Inspector (after installing mcp[cli]):
    mcp dev asvs_mcp/server/app.py
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from asvs_mcp.engine.query_service import ASVSQueryService

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Read-only access to the OWASP Application Security Verification Standard "
    "(ASVS): look up requirements by level, category, or id, search them, get "
    "prioritized recommendations, and map them to compliance frameworks "
    "(pci_dss, hipaa, gdpr, sox, iso27001)."
)


def create_server(service: ASVSQueryService) -> FastMCP:
    """Build a FastMCP server exposing every tool of ``service``."""
    mcp = FastMCP(name=service.context.settings.app_name, instructions=INSTRUCTIONS)

    @mcp.tool()
    def get_requirements_by_level(level: int, offset: int = 0, limit: int = 100) -> dict[str, Any]:
        """Get all ASVS requirements for a verification level (1, 2, or 3).

        L1 is for all applications, L2 for applications handling sensitive
        data, L3 for critical applications. Paginated (limit max 500).
        """
        return service.call_tool(
            "get_requirements_by_level", {"level": level, "offset": offset, "limit": limit}
        )

    @mcp.tool()
    def get_requirements_by_category(
        category: str,
        level: Optional[int] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> dict[str, Any]:
        """Get ASVS requirements for a category such as 'Authentication' or 'Access Control'.

        Optionally filter by level. Paginated (limit max 500).
        """
        return service.call_tool(
            "get_requirements_by_category",
            {"category": category, "level": level, "offset": offset, "limit": limit},
        )

    @mcp.tool()
    def get_requirement_details(requirement_id: str) -> dict[str, Any]:
        """Get one ASVS requirement by id (e.g. 'V6.2.1')."""
        return service.call_tool("get_requirement_details", {"requirement_id": requirement_id})

    @mcp.tool()
    def recommend_priority_controls(
        target_level: int,
        current_level: int = 0,
        focus_areas: Optional[list[str]] = None,
        application_type: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Prioritized controls to implement when moving from current_level to target_level.

        focus_areas restricts results to matching categories. Paginated.
        """
        return service.call_tool(
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

    @mcp.tool()
    def search_requirements(
        query: str,
        level: Optional[int] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Keyword search over requirement text, category, id and CWE references.

        Results are unranked and returned in dataset order. Paginated.
        """
        return service.call_tool(
            "search_requirements",
            {"query": query, "level": level, "offset": offset, "limit": limit},
        )

    @mcp.tool()
    def get_category_summary() -> dict[str, Any]:
        """Summary of all ASVS categories with per-level requirement counts."""
        return service.call_tool("get_category_summary", {})

    @mcp.tool()
    def get_compliance_requirements(
        framework: str,
        level: Optional[int] = None,
        offset: int = 0,
        limit: int = 100,
    ) -> dict[str, Any]:
        """ASVS requirements mapped to a framework: pci_dss, hipaa, gdpr, sox or iso27001."""
        return service.call_tool(
            "get_compliance_requirements",
            {"framework": framework, "level": level, "offset": offset, "limit": limit},
        )

    @mcp.tool()
    def get_compliance_gap_analysis(
        frameworks: list[str],
        target_level: int,
        implemented_requirements: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Coverage and prioritized gaps per framework for the given target level."""
        return service.call_tool(
            "get_compliance_gap_analysis",
            {
                "frameworks": frameworks,
                "target_level": target_level,
                "implemented_requirements": implemented_requirements or [],
            },
        )

    @mcp.tool()
    def map_requirement_to_compliance(requirement_id: str) -> dict[str, Any]:
        """Which compliance frameworks and controls a requirement helps satisfy."""
        return service.call_tool("map_requirement_to_compliance", {"requirement_id": requirement_id})

    logger.info(f"[Server] Registered {len(service.tool_names)} tools on {mcp.name}")
    return mcp
