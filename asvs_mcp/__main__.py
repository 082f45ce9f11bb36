"""Allow running as: python -m asvs_mcp"""

from asvs_mcp.main import run

if __name__ == "__main__":
    run()
