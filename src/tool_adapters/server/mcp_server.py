"""MCP stdio server backed by an OperationRegistry.

The MCP SDK owns the envelope (initialize, tools/list, tools/call with
{name, arguments}) and the stdio transport; this module only wires the SDK's
handlers to the registry. Exceptions raised from a tool call are reported by
the SDK as error results (isError) instead of failing the session.
"""

from typing import Any, Optional

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from ..errors import ToolError
from ..tools.registry import OperationRegistry
from ..utils.logging import get_logger

logger = get_logger(__name__)


def list_tool_definitions(registry: OperationRegistry) -> list[types.Tool]:
    """MCP tool definitions for every registered operation."""
    return [
        types.Tool(name=entry["name"], description=entry["description"], inputSchema=entry["inputSchema"])
        for entry in registry.to_mcp_list()
    ]


async def call_registry_tool(
    registry: OperationRegistry,
    name: str,
    arguments: Optional[dict[str, Any]],
) -> list[types.TextContent]:
    """Run one tools/call request against the registry.

    Raises:
        ToolError: If the call cannot be dispatched or the handler fails
    """
    logger.info(f"Tool call: {name}")
    result = await registry.dispatch(name, arguments or {})
    if not result.success:
        raise ToolError(result.error or "Operation failed")
    return [types.TextContent(type="text", text=result.to_content())]


def create_mcp_server(name: str, registry: OperationRegistry, version: str) -> Server:
    """Create an MCP server exposing the registry's operations.

    Args:
        name: Server name reported during initialization
        registry: Operations to expose
        version: Server version reported during initialization

    Returns:
        Configured low-level MCP Server
    """
    server = Server(name, version=version)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return list_tool_definitions(registry)

    @server.call_tool()
    async def call_tool(tool_name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        try:
            return await call_registry_tool(registry, tool_name, arguments)
        except ToolError as e:
            logger.info(f"Tool {tool_name} failed: {e.kind}: {e}")
            raise

    return server


async def run_mcp_server(server: Server) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        logger.info(f"MCP server '{server.name}' ready on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())
