"""Interactive MCP client."""

from .shell import ClientShell
from .transport import MCPClientError, MCPMessage, MCPStdioTransport, ToolCallOutcome

__all__ = ["ClientShell", "MCPClientError", "MCPMessage", "MCPStdioTransport", "ToolCallOutcome"]
