"""
OWASP ASVS MCP Server: Main Entry Point

Run over stdio (for MCP clients such as Claude Desktop):
    python -m asvs_mcp
    # or: asvs-mcp-server

Or build the query service programmatically:
    from asvs_mcp.main import build_service
    service = build_service()
    service.get_requirement_details(requirement_id="V6.2.1")
"""

from __future__ import annotations

import logging

from asvs_mcp.config import Settings, get_settings
from asvs_mcp.engine import ASVSQueryService, build_context
from asvs_mcp.services.data_loader import load_dataset
from asvs_mcp.utils.logger import setup_logging


def build_service(settings: Settings | None = None) -> ASVSQueryService:
    """Load the dataset, build the indexes, and return a ready query service."""
    settings = settings or get_settings()
    dataset = load_dataset(settings)
    context = build_context(
        dataset.categories,
        settings,
        data_source=dataset.source,
        cross_reference_count=len(dataset.cross_references),
    )
    return ASVSQueryService(context)


def run() -> None:
    """Start the MCP server on stdio."""
    from asvs_mcp.server import create_server

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)
    logger = logging.getLogger(__name__)

    limits = settings.limits
    logger.info(
        f"Starting {settings.app_name} v{settings.app_version} | tier={settings.security_tier.value} "
        f"| max_query_length={limits.max_query_length} | max_cache_entries={limits.max_cache_entries} "
        f"| rate_limit="
        + (
            f"{settings.rate_limit_requests}/{settings.rate_limit_window_ms / 1000:g}s"
            if settings.rate_limit
            else "disabled"
        )
        + f" | integrity_check={'on' if settings.data_hash else 'off'}"
    )

    service = build_service(settings)
    server = create_server(service)

    logger.info("OWASP ASVS MCP server running on stdio")
    server.run()


if __name__ == "__main__":
    run()
