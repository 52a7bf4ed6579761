"""MCP stdio client transport.

Launches an MCP server as a subprocess and exchanges JSON-RPC messages with
it over the child's stdin/stdout.
"""

import asyncio
import json
import os
from typing import Any, Optional

from pydantic import BaseModel

from .. import __version__
from ..config.settings import ClientConfig
from ..utils.logging import get_logger

logger = get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"

# Tool results can exceed asyncio's default 64KB line limit
STREAM_LIMIT = 4 * 1024 * 1024


class MCPClientError(Exception):
    """Raised when the server cannot be reached or answers with an error."""

    pass


class MCPMessage(BaseModel):
    """MCP protocol message.

    Attributes:
        jsonrpc: JSON-RPC version (always "2.0")
        id: Request ID
        method: Method name
        params: Method parameters
        result: Result (for responses)
        error: Error (for error responses)
    """

    jsonrpc: str = "2.0"
    id: str | int | None = None
    method: str | None = None
    params: dict[str, Any] | None = None
    result: Any | None = None
    error: dict[str, Any] | None = None


class ToolCallOutcome(BaseModel):
    """Text returned by a tools/call request.

    Attributes:
        text: Concatenated text content
        is_error: Whether the server flagged the call as failed
    """

    text: str
    is_error: bool = False


class MCPStdioTransport:
    """MCP stdio transport using a subprocess."""

    def __init__(self, config: ClientConfig, request_timeout: float = 60.0) -> None:
        """Initialize the stdio transport.

        Args:
            config: Client configuration (server command and environment)
            request_timeout: Seconds to wait for each response
        """
        self.config = config
        self.request_timeout = request_timeout
        self.process: asyncio.subprocess.Process | None = None
        self._request_id = 0
        self._pending_requests: dict[int, asyncio.Future] = {}
        self._read_task: asyncio.Task | None = None

    async def connect(self) -> None:
        """Start the MCP server subprocess and run the initialize handshake."""
        command = self.config.server_command
        logger.info(f"Starting MCP server: {' '.join(command)}")

        env = os.environ.copy()
        env.update(self.config.env)

        try:
            self.process = await asyncio.create_subprocess_exec(
                command[0],
                *command[1:],
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,
                env=env,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise MCPClientError(f"Failed to start MCP server {command[0]!r}: {e}") from e

        self._read_task = asyncio.create_task(self._read_messages())
        await self._initialize()

    async def disconnect(self) -> None:
        """Stop the MCP server subprocess."""
        if self._read_task:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass

        if self.process:
            if self.process.stdin and not self.process.stdin.is_closing():
                self.process.stdin.close()

            if self.process.returncode is None:
                try:
                    self.process.terminate()
                    await asyncio.wait_for(self.process.wait(), timeout=5.0)
                except asyncio.TimeoutError:
                    self.process.kill()
                    await self.process.wait()
                except ProcessLookupError:
                    pass

        for future in self._pending_requests.values():
            future.cancel()
        self._pending_requests.clear()

    def is_connected(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def send_message(self, message: MCPMessage) -> MCPMessage:
        """Send a request and wait for its response.

        Args:
            message: Message to send (its id is assigned here)

        Returns:
            Response message

        Raises:
            MCPClientError: If the request fails or times out
        """
        if not self.process or not self.process.stdin:
            raise MCPClientError("Not connected to MCP server")

        self._request_id += 1
        request_id = self._request_id
        message.id = request_id

        if self._read_task is None or self._read_task.done():
            raise MCPClientError(f"MCP server closed the connection before {message.method}")

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future

        try:
            await self._write(message)
        except MCPClientError:
            self._pending_requests.pop(request_id, None)
            raise

        try:
            response_data = await asyncio.wait_for(future, timeout=self.request_timeout)
        except asyncio.TimeoutError:
            self._pending_requests.pop(request_id, None)
            raise MCPClientError(f"MCP request timed out: {message.method}")

        response = MCPMessage(**response_data)
        if response.error:
            raise MCPClientError(response.error.get("message", str(response.error)))
        return response

    async def list_tools(self) -> list[dict[str, Any]]:
        """Return the server's tool definitions."""
        response = await self.send_message(MCPMessage(method="tools/list", params={}))
        return list((response.result or {}).get("tools", []))

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolCallOutcome:
        """Invoke a tool and collect its text content.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            ToolCallOutcome with the text content and error flag
        """
        response = await self.send_message(
            MCPMessage(method="tools/call", params={"name": name, "arguments": arguments})
        )
        result = response.result or {}
        texts = [item.get("text", "") for item in result.get("content", []) if item.get("type") == "text"]
        return ToolCallOutcome(text="\n".join(texts), is_error=bool(result.get("isError", False)))

    async def _initialize(self) -> None:
        init_message = MCPMessage(
            method="initialize",
            params={
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {
                    "name": "tool-adapters-client",
                    "version": __version__,
                },
            },
        )
        await self.send_message(init_message)
        await self._write(MCPMessage(method="notifications/initialized"))

    async def _write(self, message: MCPMessage) -> None:
        if not self.process or not self.process.stdin:
            raise MCPClientError("Not connected to MCP server")

        data = message.model_dump_json(exclude_none=True)
        try:
            self.process.stdin.write((data + "\n").encode())
            await self.process.stdin.drain()
        except OSError as e:
            raise MCPClientError(f"MCP server closed the connection: {e}") from e

    async def _read_messages(self) -> None:
        """Route response lines from the server to their pending futures."""
        if not self.process or not self.process.stdout:
            return

        try:
            while True:
                line = await self.process.stdout.readline()
                if not line:
                    break

                try:
                    data = json.loads(line.decode())
                except ValueError:
                    logger.warning(f"Ignoring non-JSON line from server: {line[:200]!r}")
                    continue

                message_id = data.get("id") if isinstance(data, dict) else None
                if message_id is not None and message_id in self._pending_requests:
                    future = self._pending_requests.pop(message_id)
                    if not future.done():
                        future.set_result(data)
        except ValueError as e:
            # Line longer than STREAM_LIMIT
            logger.error(f"Stopped reading from MCP server: {e}")
        finally:
            # Server went away: fail anything still waiting
            for future in self._pending_requests.values():
                if not future.done():
                    future.set_exception(MCPClientError("MCP server closed the connection"))
            self._pending_requests.clear()
