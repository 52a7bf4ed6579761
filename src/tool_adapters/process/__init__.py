"""External process execution."""

from .runner import CommandResult, ProcessRunner, SubprocessRunner

__all__ = ["CommandResult", "ProcessRunner", "SubprocessRunner"]
