"""Configuration management for tool adapters."""

from .settings import (
    DEFAULT_TIMEZONE,
    ClientConfig,
    ConfigError,
    DatabaseConfig,
    DateTimeConfig,
    load_client_config,
    load_database_config,
    load_datetime_config,
)

__all__ = [
    "DEFAULT_TIMEZONE",
    "ConfigError",
    "DatabaseConfig",
    "DateTimeConfig",
    "ClientConfig",
    "load_database_config",
    "load_datetime_config",
    "load_client_config",
]
