"""Read-only PostgreSQL tools.

Every tool delegates its whole unit of work to a single psql invocation via
the shared PsqlClient; no state is kept between calls.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..postgres.psql import PsqlClient
from ..postgres.queries import LIST_TABLES_SQL, call_records_sql, describe_table_sql
from .registry import parameters_schema
from .result import ToolResult

NO_RESULTS = "No results"
DEFAULT_CALL_RECORDS_LIMIT = 100


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


class QueryDatabaseParams(BaseModel):
    """Parameters for queryDatabase."""

    model_config = ConfigDict(extra="ignore")

    query: str = Field(..., min_length=1, strict=True, description="SQL query to execute")

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        return _not_blank(v)


class ListTablesParams(BaseModel):
    """Parameters for listTables (none)."""

    model_config = ConfigDict(extra="ignore")


class DescribeTableParams(BaseModel):
    """Parameters for describeTable."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    table_name: str = Field(
        ..., alias="tableName", min_length=1, strict=True, description="Name of the table to describe"
    )

    @field_validator("table_name")
    @classmethod
    def table_name_not_blank(cls, v: str) -> str:
        return _not_blank(v)


class GetCallRecordsParams(BaseModel):
    """Parameters for getCallRecords."""

    model_config = ConfigDict(extra="ignore")

    limit: int = Field(
        default=DEFAULT_CALL_RECORDS_LIMIT,
        gt=0,
        strict=True,
        description=f"Maximum number of records to return (default: {DEFAULT_CALL_RECORDS_LIMIT})",
    )

    @field_validator("limit", mode="before")
    @classmethod
    def default_when_null(cls, v: Optional[Any]) -> Any:
        """An explicit null means the default limit."""
        return DEFAULT_CALL_RECORDS_LIMIT if v is None else v


class _DatabaseTool:
    """Shared plumbing for tools backed by a PsqlClient."""

    params_model: type[BaseModel] = BaseModel

    def __init__(self, client: PsqlClient) -> None:
        self.client = client

    @property
    def parameters(self) -> Dict[str, Any]:
        return parameters_schema(self.params_model)


class QueryDatabaseTool(_DatabaseTool):
    """Tool for running an arbitrary read-only SQL query."""

    params_model = QueryDatabaseParams

    @property
    def name(self) -> str:
        return "queryDatabase"

    @property
    def description(self) -> str:
        return "Execute a read-only SQL query against the PostgreSQL database and return the raw rows."

    async def execute(self, params: QueryDatabaseParams) -> ToolResult:
        """Run the query.

        Returns:
            ToolResult with psql's unaligned output, or a placeholder when there are no rows
        """
        output = await self.client.query(params.query)
        return ToolResult.from_string(output or NO_RESULTS)


class ListTablesTool(_DatabaseTool):
    """Tool for listing tables in the default schema."""

    params_model = ListTablesParams

    @property
    def name(self) -> str:
        return "listTables"

    @property
    def description(self) -> str:
        return "List all tables in the public schema, one per line, in alphabetical order."

    async def execute(self, params: ListTablesParams) -> ToolResult:
        return ToolResult.from_string(await self.client.query(LIST_TABLES_SQL))


class DescribeTableTool(_DatabaseTool):
    """Tool for describing the columns of one table."""

    params_model = DescribeTableParams

    @property
    def name(self) -> str:
        return "describeTable"

    @property
    def description(self) -> str:
        return (
            "Describe a table: column name, data type, nullability and default, "
            "one column per line in column order."
        )

    async def execute(self, params: DescribeTableParams) -> ToolResult:
        return ToolResult.from_string(await self.client.query(describe_table_sql(params.table_name)))


class GetCallRecordsTool(_DatabaseTool):
    """Tool for reading the call_records table."""

    params_model = GetCallRecordsParams

    @property
    def name(self) -> str:
        return "getCallRecords"

    @property
    def description(self) -> str:
        return "Get up to 'limit' call records (id, client_id, date, call_minutes) ordered by id."

    async def execute(self, params: GetCallRecordsParams) -> ToolResult:
        return ToolResult.from_string(await self.client.query(call_records_sql(params.limit)))


def register_database_tools(client: PsqlClient) -> List:
    """Return all database tool instances bound to a client.

    Args:
        client: psql client shared by the tools

    Returns:
        List of database tool instances
    """
    return [
        QueryDatabaseTool(client),
        ListTablesTool(client),
        DescribeTableTool(client),
        GetCallRecordsTool(client),
    ]
