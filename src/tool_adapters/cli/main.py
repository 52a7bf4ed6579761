"""Main CLI entry point for tool adapters.

Servers write responses to stdout and all diagnostics to stderr.
"""

import asyncio
import sys
from typing import Optional

import click

from .. import __version__
from ..config.settings import ConfigError, load_client_config, load_database_config, load_datetime_config
from ..postgres.psql import PsqlClient
from ..process.runner import SubprocessRunner
from ..tools import register_datetime_tools, register_postgres_tools
from ..tools.registry import OperationRegistry
from ..utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _build_postgres_registry(env_file: Optional[str]) -> OperationRegistry:
    config = load_database_config(dotenv_path=env_file)
    logger.info(f"Using database {config.redacted_url} (read_only={config.read_only}, shell={config.use_shell})")
    if config.use_shell:
        logger.warning("PSQL_USE_SHELL is enabled: SQL is passed through the shell with minimal escaping")
    client = PsqlClient(config, SubprocessRunner(timeout=config.timeout))
    return register_postgres_tools(client)


def _fail(ctx: click.Context, message: str) -> None:
    logger.error(message)
    ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Diagnostic log level (logs go to stderr)",
)
@click.option("--log-format", type=click.Choice(["text", "json"]), default="text", help="Log output format")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
@click.option("--env-file", type=click.Path(exists=True, dir_okay=False), help="Load settings from this .env file")
@click.pass_context
def main(ctx: click.Context, log_level: str, log_format: str, log_file: Optional[str], env_file: Optional[str]) -> None:
    """Stdio tool servers for date/time and read-only PostgreSQL access."""
    setup_logging(level=log_level, format_type=log_format, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file


@main.command("serve-lines")
@click.pass_context
def serve_lines(ctx: click.Context) -> None:
    """Serve the PostgreSQL tools over the line protocol ({id, method, params})."""
    from ..server.line_server import LineServer

    try:
        registry = _build_postgres_registry(ctx.obj["env_file"])
    except ConfigError as e:
        _fail(ctx, str(e))
        return

    try:
        asyncio.run(LineServer(registry, sys.stdin.buffer, sys.stdout).serve())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except OSError as e:
        _fail(ctx, f"Line server stream failure: {e}")


@main.command("serve-postgres")
@click.pass_context
def serve_postgres(ctx: click.Context) -> None:
    """Serve the PostgreSQL tools over MCP stdio."""
    from ..server.mcp_server import create_mcp_server, run_mcp_server

    try:
        registry = _build_postgres_registry(ctx.obj["env_file"])
    except ConfigError as e:
        _fail(ctx, str(e))
        return

    server = create_mcp_server("postgres-mcp", registry, __version__)
    try:
        asyncio.run(run_mcp_server(server))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as e:
        logger.exception("MCP server failed")
        _fail(ctx, f"Failed to run PostgreSQL MCP server: {e}")


@main.command("serve-datetime")
@click.pass_context
def serve_datetime(ctx: click.Context) -> None:
    """Serve the current date/time tool over MCP stdio."""
    from ..server.mcp_server import create_mcp_server, run_mcp_server

    config = load_datetime_config(dotenv_path=ctx.obj["env_file"])
    server = create_mcp_server("datetime-mcp", register_datetime_tools(config.default_timezone), __version__)
    try:
        asyncio.run(run_mcp_server(server))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as e:
        logger.exception("MCP server failed")
        _fail(ctx, f"Failed to start DateTime MCP server: {e}")


@main.command("client")
@click.option("--server-command", help="Command used to launch the MCP server (default: $MCP_SERVER_COMMAND)")
@click.pass_context
def client(ctx: click.Context, server_command: Optional[str]) -> None:
    """Interactive client for the PostgreSQL MCP server."""
    from ..client.shell import ClientShell
    from ..client.transport import MCPClientError, MCPStdioTransport

    try:
        config = load_client_config(dotenv_path=ctx.obj["env_file"], server_command=server_command)
    except ConfigError as e:
        _fail(ctx, str(e))
        return

    async def session() -> None:
        transport = MCPStdioTransport(config)
        click.echo("PostgreSQL MCP Client")
        click.echo("====================")
        click.echo(f"Connecting to MCP server: {' '.join(config.server_command)}")
        try:
            await transport.connect()
            click.echo("Connected successfully!")
            shell = ClientShell(transport)
            await shell.show_tools()
            await shell.run()
        finally:
            await transport.disconnect()

    try:
        asyncio.run(session())
    except KeyboardInterrupt:
        click.echo("\nGoodbye!")
    except MCPClientError as e:
        _fail(ctx, f"Error: {e}")


if __name__ == "__main__":
    main()
