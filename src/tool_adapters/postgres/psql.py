"""psql command assembly and execution.

Queries run through the ``psql`` command line client in tuples-only,
unaligned mode (``-t -A``), so results come back as ``|``-separated rows.

Two invocation paths exist:

- exec mode (default): the SQL is one discrete argument in the argument
  vector and no shell ever sees it.
- shell mode: the legacy ``psql "<url>" -t -A -c "<sql>"`` command line with
  ``"`` and ``$`` backslash-escaped. This only keeps the SQL inside its
  double-quoted argument; backticks and backslashes still reach the shell, so
  it is unsafe for untrusted input.
"""

from typing import Optional

from ..config.settings import DatabaseConfig
from ..process.runner import ProcessRunner
from ..utils.logging import get_logger

logger = get_logger(__name__)


def escape_sql_for_shell(sql: str) -> str:
    """Escape SQL for interpolation inside a double-quoted shell argument.

    Only ``"`` becomes ``\\"`` and ``$`` becomes ``\\$``; every other
    character passes through unchanged.
    """
    return sql.replace('"', '\\"').replace("$", "\\$")


def quote_literal(value: str) -> str:
    """Render a string as a single-quoted SQL literal."""
    return "'" + value.replace("'", "''") + "'"


def build_command_line(config: DatabaseConfig, sql: str, url: Optional[str] = None) -> str:
    """Assemble the legacy shell command line for a query.

    Args:
        config: Database configuration
        sql: SQL text to run
        url: Connection string to embed (defaults to config.connection_url)

    Returns:
        Command line of the form ``psql "<url>" -t -A -c "<escaped sql>"``
    """
    target = config.connection_url if url is None else url
    return f'{config.psql_bin} "{target}" -t -A -c "{escape_sql_for_shell(sql)}"'


def build_argv(config: DatabaseConfig, sql: str) -> list[str]:
    """Assemble the psql argument vector for a query.

    Args:
        config: Database configuration
        sql: SQL text to run, passed verbatim

    Returns:
        Argument vector suitable for exec-style spawning
    """
    return [config.psql_bin, "-X", "-t", "-A", "-d", config.connection_url, "-c", sql]


class PsqlClient:
    """Runs SQL through psql using an injected process runner."""

    def __init__(self, config: DatabaseConfig, runner: ProcessRunner) -> None:
        """Initialize the client.

        Args:
            config: Database configuration
            runner: Process runner used for every invocation
        """
        self.config = config
        self.runner = runner

    async def query(self, sql: str) -> str:
        """Run one SQL statement and return its trimmed text output.

        Args:
            sql: SQL text

        Returns:
            psql output with surrounding whitespace removed

        Raises:
            ProcessError: If psql fails
        """
        env = self.config.child_env()

        if self.config.use_shell:
            logger.debug(f"psql (shell): {build_command_line(self.config, sql, url=self.config.redacted_url)}")
            result = await self.runner.run_shell(build_command_line(self.config, sql), env=env)
        else:
            logger.debug(f"psql: {self.config.redacted_url} -c {sql!r}")
            result = await self.runner.run(build_argv(self.config, sql), env=env)

        return result.stdout.strip()
