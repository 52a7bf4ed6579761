"""Test configuration and fixtures for tool adapter tests.

This module provides shared fixtures and configuration for all tests.
"""

import os
import stat
import sys
from typing import Mapping, Optional, Sequence

import pytest

from tool_adapters.config.settings import DatabaseConfig
from tool_adapters.errors import ProcessError
from tool_adapters.postgres.psql import PsqlClient
from tool_adapters.process.runner import CommandResult, ProcessRunner
from tool_adapters.tools import register_datetime_tools, register_postgres_tools


class FakeRunner(ProcessRunner):
    """Process runner that records invocations instead of spawning.

    Attributes:
        stdout: Output returned by every successful call
        error: Exception raised by every call when set
        calls: Recorded (mode, command, env) tuples
    """

    def __init__(self, stdout: str = "", error: Optional[ProcessError] = None) -> None:
        self.stdout = stdout
        self.error = error
        self.calls: list[tuple[str, object, Optional[dict]]] = []

    async def run(self, argv: Sequence[str], env: Optional[Mapping[str, str]] = None) -> CommandResult:
        self.calls.append(("exec", list(argv), dict(env) if env is not None else None))
        if self.error is not None:
            raise self.error
        return CommandResult(argv=list(argv), stdout=self.stdout)

    async def run_shell(self, command_line: str, env: Optional[Mapping[str, str]] = None) -> CommandResult:
        self.calls.append(("shell", command_line, dict(env) if env is not None else None))
        if self.error is not None:
            raise self.error
        return CommandResult(command_line=command_line, stdout=self.stdout)

    @property
    def last_sql(self) -> str:
        """SQL passed to the most recent exec-mode call."""
        mode, command, _ = self.calls[-1]
        assert mode == "exec"
        return command[command.index("-c") + 1]


@pytest.fixture(scope="function")
def database_config():
    """Database configuration with the standard defaults."""
    return DatabaseConfig()


@pytest.fixture(scope="function")
def fake_runner():
    """Recording process runner with empty output."""
    return FakeRunner()


@pytest.fixture(scope="function")
def psql_client(database_config, fake_runner):
    """psql client wired to the fake runner."""
    return PsqlClient(database_config, fake_runner)


@pytest.fixture(scope="function")
def postgres_registry(psql_client):
    """Registry holding the database tools."""
    return register_postgres_tools(psql_client)


@pytest.fixture(scope="function")
def datetime_registry():
    """Registry holding the datetime tool."""
    return register_datetime_tools()


FAKE_PSQL = """#!{python}
import os
import sys

sql = sys.argv[sys.argv.index("-c") + 1]
if "FROM nope" in sql:
    sys.stderr.write('ERROR:  relation "nope" does not exist\\n')
    sys.exit(1)
if "call_records" in sql:
    sys.stdout.write("1|A|2024-01-01|10\\n2|B|2024-01-02|20\\n")
elif "information_schema.tables" in sql:
    sys.stdout.write("call_records\\nclients\\n")
else:
    sys.stdout.write(os.environ.get("PGOPTIONS", "") + "\\n")
"""


@pytest.fixture
def fake_psql(tmp_path):
    """Executable standing in for psql that answers from canned output."""
    if sys.platform == "win32":
        pytest.skip("fake psql relies on a shebang script")
    path = tmp_path / "psql"
    path.write_text(FAKE_PSQL.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def cli_env(fake_psql):
    """Environment for CLI subprocesses pointed at the fake psql."""
    env = {k: v for k, v in os.environ.items() if k not in ("DATABASE_URL", "PGOPTIONS", "PSQL_USE_SHELL")}
    env["PSQL_BIN"] = fake_psql
    env["PSQL_TIMEOUT"] = "20"
    return env


@pytest.fixture
def cli_command():
    """Command prefix running the tool-adapters CLI with this interpreter."""
    return [sys.executable, "-m", "tool_adapters.cli.main"]


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (spawn real processes)"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (no external dependencies)"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
