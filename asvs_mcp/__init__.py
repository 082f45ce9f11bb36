"""OWASP ASVS MCP server: read-only query tools over the ASVS dataset."""

__version__ = "1.0.0"
