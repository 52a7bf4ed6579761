"""Interactive REPL for the PostgreSQL MCP server."""

import asyncio
from typing import Any, Optional, Protocol

import click
from tabulate import tabulate

from ..utils.logging import get_logger
from .transport import MCPClientError, ToolCallOutcome

logger = get_logger(__name__)

DEFAULT_CALL_RECORDS_LIMIT = 5

HELP_TEXT = """Commands:
- list: List all tables
- describe <table>: Describe table schema
- query <sql>: Execute SQL query
- callrecords [limit]: Get call records
- help: Show this help
- exit: Quit the application"""


class ToolSession(Protocol):
    """What the shell needs from a connected MCP client."""

    async def list_tools(self) -> list[dict[str, Any]]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolCallOutcome: ...


class ClientShell:
    """Line-oriented command interpreter driving an MCP tool session."""

    def __init__(self, session: ToolSession) -> None:
        self.session = session

    async def show_tools(self) -> None:
        """Print the server's tools as a table."""
        tools = await self.session.list_tools()
        if not tools:
            click.echo("No tools available or unable to retrieve tools list")
            return
        rows = [[tool.get("name", ""), tool.get("description") or "No description"] for tool in tools]
        click.echo("\nAvailable tools:")
        click.echo(tabulate(rows, headers=["Tool", "Description"], tablefmt="grid"))

    async def handle_command(self, line: str) -> bool:
        """Execute one command line.

        Args:
            line: Raw input

        Returns:
            False when the shell should exit, True otherwise
        """
        text = line.strip()
        if not text:
            return True

        parts = text.split(None, 1)
        command = parts[0].lower()
        rest = parts[1].strip() if len(parts) > 1 else ""

        if command == "exit":
            click.echo("Goodbye!")
            return False

        try:
            if command == "help":
                click.echo(HELP_TEXT)
            elif command == "list":
                await self._run("Tables", "listTables", {})
            elif command == "describe":
                if not rest:
                    click.echo("Error: Missing table name")
                else:
                    table = rest.split()[0]
                    await self._run(f"Schema for {table}", "describeTable", {"tableName": table})
            elif command == "query":
                if not rest:
                    click.echo("Error: Missing SQL query")
                else:
                    await self._run("Query result", "queryDatabase", {"query": rest})
            elif command == "callrecords":
                limit = self._parse_limit(rest)
                if limit is not None:
                    await self._run(f"Call records (limit: {limit})", "getCallRecords", {"limit": limit})
            else:
                click.echo(f"Unknown command: {command}")
        except MCPClientError as e:
            logger.debug(f"Command {command!r} failed", exc_info=True)
            click.echo(f"Error executing command: {e}")

        return True

    async def run(self) -> None:
        """Prompt for commands until ``exit`` or end of input."""
        click.echo(HELP_TEXT)
        click.echo("")
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, input, "> ")
            except EOFError:
                click.echo("")
                break
            if not await self.handle_command(line):
                break

    @staticmethod
    def _parse_limit(text: str) -> Optional[int]:
        if not text:
            return DEFAULT_CALL_RECORDS_LIMIT
        token = text.split()[0]
        try:
            limit = int(token)
        except ValueError:
            click.echo(f"Error: Invalid limit: {token}")
            return None
        if limit <= 0:
            click.echo("Error: Limit must be positive")
            return None
        return limit

    async def _run(self, title: str, tool: str, arguments: dict[str, Any]) -> None:
        outcome = await self.session.call_tool(tool, arguments)
        if outcome.is_error:
            click.echo(f"Error: {outcome.text}")
            return
        click.echo(f"\n{title}:")
        click.echo(outcome.text or "No result returned")
