"""cliquebeam MCP server — exposes typed clique mining as tools for AI agents."""

from cliquebeam.mcp.server import mcp, run_server

__all__ = ["mcp", "run_server"]
