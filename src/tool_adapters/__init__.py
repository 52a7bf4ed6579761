"""Tool Adapters.

Small stdio tool servers for AI agent hosts: current date/time and
read-only PostgreSQL access through psql, exposed over a raw JSON line
protocol or the Model Context Protocol.
"""

__version__ = "0.1.0"

from .errors import ParseError, ProcessError, TimezoneError, ToolError, UnknownMethodError, ValidationError

__all__ = [
    "__version__",
    "ToolError",
    "ParseError",
    "ValidationError",
    "UnknownMethodError",
    "ProcessError",
    "TimezoneError",
]
