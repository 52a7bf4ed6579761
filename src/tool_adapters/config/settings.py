"""Runtime configuration for tool adapters.

Configuration is read once at startup from the process environment (after
loading an optional .env file) into pydantic models, which are then passed
explicitly to the process runner, the psql client and the servers. Nothing
below the CLI layer reads the environment on its own.
"""

import os
import shlex
from typing import Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_SERVER_COMMAND = "tool-adapters serve-postgres"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the environment holds an unusable configuration."""

    pass


class DatabaseConfig(BaseModel):
    """Connection and invocation settings for the psql client."""

    url: Optional[str] = Field(None, description="Full connection string (takes precedence)")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5433, ge=1, le=65535, description="Database port")
    user: str = Field(default="postgres", description="Database user")
    database: str = Field(default="evals", description="Database name")
    password: Optional[str] = Field(default="postgres", description="Database password")
    psql_bin: str = Field(default="psql", min_length=1, description="psql executable")
    timeout: Optional[float] = Field(default=30.0, description="Per-query timeout in seconds (None disables)")
    use_shell: bool = Field(default=False, description="Run psql through the shell with an escaped command line")
    read_only: bool = Field(default=True, description="Force read-only transactions")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Treat a non-positive timeout as disabled."""
        if v is not None and v <= 0:
            return None
        return v

    @property
    def connection_url(self) -> str:
        """Connection string handed to psql.

        The password is never embedded when it comes from PGPASSWORD; it is
        passed to the child through its environment instead.
        """
        if self.url:
            return self.url
        return f"postgresql://{quote(self.user, safe='')}@{self.host}:{self.port}/{quote(self.database, safe='')}"

    @property
    def redacted_url(self) -> str:
        """Connection string with any embedded password masked, for logging."""
        parts = urlsplit(self.connection_url)
        if parts.password is None:
            return self.connection_url
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return urlunsplit(parts._replace(netloc=netloc))

    def child_env(self, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """Build the environment for a psql child process.

        Args:
            base: Environment to extend (defaults to the current process environment)

        Returns:
            Environment mapping including PGPASSWORD / PGOPTIONS where applicable
        """
        env = dict(os.environ if base is None else base)
        if not self.url and self.password is not None:
            env["PGPASSWORD"] = self.password
        if self.read_only:
            options = env.get("PGOPTIONS", "")
            env["PGOPTIONS"] = f"{options} -c default_transaction_read_only=on".strip()
        return env


class DateTimeConfig(BaseModel):
    """Settings for the datetime server."""

    default_timezone: str = Field(default=DEFAULT_TIMEZONE, min_length=1, description="Zone used when none is given")


class ClientConfig(BaseModel):
    """Settings for the interactive client."""

    server_command: list[str] = Field(
        default_factory=lambda: shlex.split(DEFAULT_SERVER_COMMAND),
        min_length=1,
        description="Command used to launch the MCP server",
    )
    env: dict[str, str] = Field(default_factory=dict, description="Extra environment for the server process")


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _resolve_env(env: Optional[Mapping[str, str]], dotenv_path: Optional[str]) -> Mapping[str, str]:
    if env is not None:
        return env
    load_dotenv(dotenv_path)
    return os.environ


def load_database_config(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> DatabaseConfig:
    """Load database settings from the environment.

    Args:
        env: Explicit environment mapping (skips .env loading when given)
        dotenv_path: Optional path to a .env file

    Returns:
        Validated DatabaseConfig

    Raises:
        ConfigError: If a value cannot be parsed
    """
    source = _resolve_env(env, dotenv_path)

    data: dict = {
        "url": source.get("DATABASE_URL") or None,
        "use_shell": _env_flag(source.get("PSQL_USE_SHELL"), False),
        "read_only": _env_flag(source.get("PSQL_READ_ONLY"), True),
    }
    for key, var in (
        ("host", "PGHOST"),
        ("port", "PGPORT"),
        ("user", "PGUSER"),
        ("database", "PGDATABASE"),
        ("password", "PGPASSWORD"),
        ("psql_bin", "PSQL_BIN"),
        ("timeout", "PSQL_TIMEOUT"),
    ):
        value = source.get(var)
        if value:
            data[key] = value

    try:
        return DatabaseConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid database configuration: {e}") from e


def load_datetime_config(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> DateTimeConfig:
    """Load datetime server settings from the environment."""
    source = _resolve_env(env, dotenv_path)
    zone = source.get("DATETIME_DEFAULT_TIMEZONE")
    return DateTimeConfig(default_timezone=zone) if zone else DateTimeConfig()


def load_client_config(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
    server_command: Optional[str] = None,
) -> ClientConfig:
    """Load interactive client settings.

    Args:
        env: Explicit environment mapping (skips .env loading when given)
        dotenv_path: Optional path to a .env file
        server_command: Command line overriding MCP_SERVER_COMMAND

    Returns:
        Validated ClientConfig

    Raises:
        ConfigError: If the server command is empty
    """
    source = _resolve_env(env, dotenv_path)
    command = server_command or source.get("MCP_SERVER_COMMAND") or DEFAULT_SERVER_COMMAND

    passthrough = {
        var: source[var]
        for var in ("DATABASE_URL", "PGHOST", "PGPORT", "PGUSER", "PGDATABASE", "PGPASSWORD")
        if source.get(var)
    }
    try:
        return ClientConfig(server_command=shlex.split(command), env=passthrough)
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"Invalid server command {command!r}: {e}") from e
