"""MCP transport layer."""

from .app import create_server

__all__ = ["create_server"]
