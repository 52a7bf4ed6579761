"""Operations exposed by the tool servers.

- database: read-only PostgreSQL tools backed by psql
- clock: current date/time with timezone fallback

Example:
    >>> from tool_adapters.tools import register_datetime_tools
    >>> registry = register_datetime_tools()
    >>> registry.names()
    ['getCurrentDateTime']
"""

from typing import Optional

from ..config.settings import DEFAULT_TIMEZONE
from ..postgres.psql import PsqlClient
from .clock import GetCurrentDateTimeTool, format_current_datetime, resolve_timezone
from .database import (
    DescribeTableTool,
    GetCallRecordsTool,
    ListTablesTool,
    QueryDatabaseTool,
    register_database_tools,
)
from .registry import OperationRegistry, parameters_schema
from .result import ToolResult

__all__ = [
    "ToolResult",
    "OperationRegistry",
    "parameters_schema",
    "QueryDatabaseTool",
    "ListTablesTool",
    "DescribeTableTool",
    "GetCallRecordsTool",
    "GetCurrentDateTimeTool",
    "format_current_datetime",
    "resolve_timezone",
    "register_database_tools",
    "register_postgres_tools",
    "register_datetime_tools",
]


def register_postgres_tools(client: PsqlClient) -> OperationRegistry:
    """Build a registry holding the database tools.

    Args:
        client: psql client shared by the tools

    Returns:
        OperationRegistry with all database tools registered
    """
    registry = OperationRegistry()
    for tool in register_database_tools(client):
        registry.register(tool)
    return registry


def register_datetime_tools(default_timezone: Optional[str] = None) -> OperationRegistry:
    """Build a registry holding the datetime tool."""
    registry = OperationRegistry()
    registry.register(GetCurrentDateTimeTool(default_timezone or DEFAULT_TIMEZONE))
    return registry
