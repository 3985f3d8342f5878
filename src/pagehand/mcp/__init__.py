"""pagehand MCP Server — Expose pagehand's planning tools over MCP.

This package wraps the intent resolver, selector matcher and action planner
as a Model Context Protocol server, so a model-driven tool loop can call
them directly.

Transport: stdio (standard for MCP CLI tools).
"""

from pagehand.mcp.server import create_server, main

__all__ = ["create_server", "main"]
