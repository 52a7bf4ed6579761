"""Tests for the line-protocol framing loop."""

import io
import json

import pytest

from tool_adapters.errors import ProcessError
from tool_adapters.server.line_server import LineServer, ServerState
from tool_adapters.tools import OperationRegistry
from tool_adapters.tools.database import ListTablesParams
from tool_adapters.tools.result import ToolResult


class ExplodingTool:
    """Tool whose handler fails with an unexpected exception."""

    name = "explode"
    description = "Always fails"

    params_model = ListTablesParams

    parameters = {"type": "object", "properties": {}, "required": []}

    async def execute(self, params):
        raise RuntimeError("kaboom")


class SoftFailureTool(ExplodingTool):
    """Tool reporting failure through its ToolResult."""

    name = "softFail"

    async def execute(self, params):
        return ToolResult.failure("not today")


def _serve_input(registry, lines):
    source = io.StringIO("".join(line + "\n" for line in lines))
    sink = io.StringIO()
    return LineServer(registry, source, sink), sink


def _responses(sink):
    return [json.loads(line) for line in sink.getvalue().splitlines()]


class TestHandleLine:
    """Tests for LineServer.handle_line."""

    @pytest.mark.asyncio
    async def test_success(self, postgres_registry, fake_runner):
        fake_runner.stdout = "clients\n"
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())

        response = await server.handle_line('{"id": 5, "method": "listTables", "params": {}}')

        assert response.id == 5
        assert response.result == "clients"
        assert response.error is None

    @pytest.mark.asyncio
    async def test_blank_line_ignored(self, postgres_registry):
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())
        assert await server.handle_line("   \n") is None

    @pytest.mark.asyncio
    async def test_parse_error_has_null_id(self, postgres_registry):
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())
        response = await server.handle_line("{broken")
        assert response.id is None
        assert response.error.startswith("Parse error")

    @pytest.mark.asyncio
    async def test_unknown_method(self, postgres_registry, fake_runner):
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())
        response = await server.handle_line('{"id": "a", "method": "dropEverything", "params": {}}')
        assert response.id == "a"
        assert response.error == "Unknown method: dropEverything"
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_missing_method(self, postgres_registry):
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())
        response = await server.handle_line('{"id": 3, "params": {}}')
        assert response.id == 3
        assert "Unknown method" in response.error

    @pytest.mark.asyncio
    async def test_validation_error_without_spawn(self, postgres_registry, fake_runner):
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())
        response = await server.handle_line('{"id": 9, "method": "describeTable", "params": {}}')
        assert response.id == 9
        assert "tableName" in response.error
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_process_failure(self, postgres_registry, fake_runner):
        fake_runner.error = ProcessError('ERROR:  relation "nope" does not exist', exit_status=1)
        server = LineServer(postgres_registry, io.StringIO(), io.StringIO())

        response = await server.handle_line('{"id": 1, "method": "queryDatabase", "params": {"query": "SELECT * FROM nope"}}')

        assert response.id == 1
        assert "does not exist" in response.error
        assert server.state == ServerState.IDLE

    @pytest.mark.asyncio
    async def test_unexpected_exception_reported(self):
        registry = OperationRegistry()
        registry.register(ExplodingTool())
        server = LineServer(registry, io.StringIO(), io.StringIO())

        response = await server.handle_line('{"id": 1, "method": "explode"}')

        assert response.error == "Internal error: kaboom"
        assert server.state == ServerState.IDLE

    @pytest.mark.asyncio
    async def test_failed_tool_result(self):
        registry = OperationRegistry()
        registry.register(SoftFailureTool())
        server = LineServer(registry, io.StringIO(), io.StringIO())

        response = await server.handle_line('{"id": 2, "method": "softFail"}')

        assert response.error == "not today"


class TestServe:
    """Tests for the full read-dispatch-write loop."""

    @pytest.mark.asyncio
    async def test_one_response_per_request_in_order(self, postgres_registry, fake_runner):
        """Test every request gets exactly one response carrying its id, in input order."""
        fake_runner.stdout = "ok"
        lines = [
            '{"id": 1, "method": "listTables", "params": {}}',
            '{"id": "two", "method": "queryDatabase", "params": {"query": "SELECT 1"}}',
            '{"id": 3, "method": "nope", "params": {}}',
            "",
            "garbage",
            '{"id": 4.5, "method": "getCallRecords", "params": {"limit": 1}}',
        ]
        server, sink = _serve_input(postgres_registry, lines)

        await server.serve()

        responses = _responses(sink)
        assert [r["id"] for r in responses] == [1, "two", 3, None, 4.5]
        assert responses[0] == {"id": 1, "result": "ok"}
        assert responses[1] == {"id": "two", "result": "ok"}
        assert "error" in responses[2] and "result" not in responses[2]
        assert "error" in responses[3]
        assert responses[4] == {"id": 4.5, "result": "ok"}
        assert server.state == ServerState.CLOSED

    @pytest.mark.asyncio
    async def test_continues_after_failure(self, postgres_registry, fake_runner):
        fake_runner.error = ProcessError("down", exit_status=2)
        lines = ['{"id": 1, "method": "listTables"}', '{"id": 2, "method": "listTables"}']
        server, sink = _serve_input(postgres_registry, lines)

        await server.serve()

        assert [r["id"] for r in _responses(sink)] == [1, 2]
        assert all(r["error"] == "down" for r in _responses(sink))

    @pytest.mark.asyncio
    async def test_empty_input_closes(self, postgres_registry):
        server, sink = _serve_input(postgres_registry, [])
        await server.serve()
        assert sink.getvalue() == ""
        assert server.state == ServerState.CLOSED

    @pytest.mark.asyncio
    async def test_each_response_is_flushed(self, postgres_registry, fake_runner):
        """Test the output stream is flushed after every response line."""

        class CountingSink(io.StringIO):
            flushes = 0

            def flush(self):
                CountingSink.flushes += 1
                super().flush()

        sink = CountingSink()
        source = io.StringIO('{"id": 1, "method": "listTables"}\n{"id": 2, "method": "listTables"}\n')
        await LineServer(postgres_registry, source, sink).serve()

        assert CountingSink.flushes == 2
        assert len(sink.getvalue().splitlines()) == 2


class TestMalformedInput:
    """Tests that undecodable lines are answered and the loop keeps going."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_line",
        [
            b"\xff\xfe garbage",
            b'{"id": ' + b"1" * 5000 + b', "method": "listTables"}',
            b"[" * 100000,
        ],
        ids=["invalid-utf8", "oversized-integer", "deep-nesting"],
    )
    async def test_parse_error_then_next_request(self, postgres_registry, fake_runner, bad_line):
        fake_runner.stdout = "clients\n"
        source = io.BytesIO(bad_line + b"\n" + b'{"id": 7, "method": "listTables"}\n')
        sink = io.StringIO()

        server = LineServer(postgres_registry, source, sink)
        await server.serve()

        responses = _responses(sink)
        assert len(responses) == 2
        assert responses[0]["id"] is None
        assert responses[0]["error"].startswith("Parse error")
        assert responses[1] == {"id": 7, "result": "clients"}
        assert server.state == ServerState.CLOSED

    @pytest.mark.asyncio
    async def test_binary_stream_round_trip(self, postgres_registry, fake_runner):
        fake_runner.stdout = "1|A|2024-01-01|10"
        source = io.BytesIO(b'{"id":1,"method":"getCallRecords","params":{"limit":1}}\n')
        sink = io.StringIO()

        await LineServer(postgres_registry, source, sink).serve()

        assert sink.getvalue() == '{"id":1,"result":"1|A|2024-01-01|10"}\n'
