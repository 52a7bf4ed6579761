"""Tool servers: raw line protocol and MCP over stdio."""

from .line_server import LineServer, ServerState
from .mcp_server import call_registry_tool, create_mcp_server, list_tool_definitions, run_mcp_server
from .protocol import LineRequest, LineResponse, decode_request

__all__ = [
    "LineServer",
    "ServerState",
    "LineRequest",
    "LineResponse",
    "decode_request",
    "create_mcp_server",
    "run_mcp_server",
    "list_tool_definitions",
    "call_registry_tool",
]
