"""Fixed SQL used by the database tools."""

from .psql import quote_literal

DEFAULT_SCHEMA = "public"
CALL_RECORDS_TABLE = "call_records"

LIST_TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    f"WHERE table_schema = '{DEFAULT_SCHEMA}' "
    "ORDER BY table_name"
)


def describe_table_sql(table_name: str) -> str:
    """Columns of a table in the default schema, by ordinal position."""
    return (
        "SELECT column_name, data_type, is_nullable, column_default "
        "FROM information_schema.columns "
        f"WHERE table_schema = '{DEFAULT_SCHEMA}' AND table_name = {quote_literal(table_name)} "
        "ORDER BY ordinal_position"
    )


def call_records_sql(limit: int) -> str:
    """First ``limit`` call records ordered by id."""
    return (
        "SELECT id, client_id, date, call_minutes "
        f"FROM {CALL_RECORDS_TABLE} "
        "ORDER BY id "
        f"LIMIT {int(limit)}"
    )
