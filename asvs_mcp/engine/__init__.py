"""
Query engine: the single boundary the transport layer interacts with.

    from asvs_mcp.engine import ASVSQueryService, build_context
"""

from .context import ServerContext, build_context
from .query_service import ASVSQueryService

__all__ = ["ASVSQueryService", "ServerContext", "build_context"]
