"""MCP (Model Context Protocol) surface for autotriage.

Exposes the triage tools, the stats resource and the guided prompts over a
stdio JSON-RPC server.
"""

from autotriage.mcp.server import MCPServer
from autotriage.mcp.tools import ToolResult, TriageToolkit

__all__ = ["MCPServer", "ToolResult", "TriageToolkit"]
