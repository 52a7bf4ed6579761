"""PostgreSQL access through the psql command line client."""

from .psql import PsqlClient, build_argv, build_command_line, escape_sql_for_shell, quote_literal
from .queries import LIST_TABLES_SQL, call_records_sql, describe_table_sql

__all__ = [
    "PsqlClient",
    "build_argv",
    "build_command_line",
    "escape_sql_for_shell",
    "quote_literal",
    "LIST_TABLES_SQL",
    "describe_table_sql",
    "call_records_sql",
]
