"""Line-protocol tool server.

Reads one JSON request per line, dispatches it through an OperationRegistry
and writes exactly one JSON response line per request.

Requests are processed strictly sequentially: a line is read, its operation
runs to completion, the response is written and flushed, and only then is the
next line read. Response order therefore equals request order.
"""

import asyncio
import sys
from enum import Enum
from typing import BinaryIO, Optional, TextIO, Union

from ..errors import ParseError, ToolError
from ..tools.registry import OperationRegistry
from ..utils.logging import get_logger
from .protocol import LineResponse, decode_request

logger = get_logger(__name__)


class ServerState(str, Enum):
    """Framing loop state."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    CLOSED = "closed"


class LineServer:
    """Request/response framing loop over text streams."""

    def __init__(
        self,
        registry: OperationRegistry,
        input_stream: Optional[Union[BinaryIO, TextIO]] = None,
        output_stream: Optional[TextIO] = None,
    ) -> None:
        """Initialize the server.

        Args:
            registry: Operations to expose
            input_stream: Stream of request lines, binary or text (defaults to the stdin byte stream)
            output_stream: Stream for response lines (defaults to stdout)
        """
        self.registry = registry
        self.input_stream = input_stream if input_stream is not None else sys.stdin.buffer
        self.output_stream = output_stream if output_stream is not None else sys.stdout
        self.state = ServerState.IDLE
        self._write_lock = asyncio.Lock()

    async def handle_line(self, line: Union[str, bytes]) -> Optional[LineResponse]:
        """Turn one input line into its response.

        Args:
            line: Raw input line; bytes are decoded as UTF-8

        Returns:
            The response, or None for a blank line
        """
        text = line.strip()
        if not text:
            return None

        try:
            request = decode_request(text)
        except ParseError as e:
            logger.warning(str(e))
            return LineResponse.failure(None, str(e))

        self.state = ServerState.DISPATCHING
        try:
            result = await self.registry.dispatch(request.method, request.params)
        except ToolError as e:
            logger.info(f"Request {request.id!r} ({request.method}) failed: {e.kind}: {e}")
            return LineResponse.failure(request.id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error handling request {request.id!r}")
            return LineResponse.failure(request.id, f"Internal error: {e}")
        finally:
            self.state = ServerState.IDLE

        if not result.success:
            return LineResponse.failure(request.id, result.error or "Operation failed")
        return LineResponse.success(request.id, result.to_content())

    async def write_response(self, response: LineResponse) -> None:
        """Write one response line and flush it immediately."""
        async with self._write_lock:
            self.output_stream.write(response.to_line() + "\n")
            self.output_stream.flush()

    async def serve(self) -> None:
        """Process lines until the input stream ends."""
        loop = asyncio.get_running_loop()
        logger.info(f"Line server ready with operations: {', '.join(self.registry.names())}")

        try:
            while True:
                line = await loop.run_in_executor(None, self.input_stream.readline)
                if not line:
                    logger.info("End of input, shutting down")
                    break

                response = await self.handle_line(line)
                if response is not None:
                    await self.write_response(response)
        finally:
            self.state = ServerState.CLOSED
