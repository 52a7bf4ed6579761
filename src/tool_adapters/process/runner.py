"""External process runner.

Spawns a child process, waits for it without blocking the event loop and
captures its output. A nonzero exit status, a spawn failure or a timeout is
reported as ProcessError.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from ..errors import ProcessError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class CommandResult(BaseModel):
    """Outcome of one successful external command invocation.

    Attributes:
        argv: Argument vector (exec mode)
        command_line: Shell command line (shell mode)
        stdout: Captured standard output
        stderr: Captured standard error
        exit_status: Process exit code
    """

    argv: Optional[list[str]] = Field(None, description="Argument vector (exec mode)")
    command_line: Optional[str] = Field(None, description="Shell command line (shell mode)")
    stdout: str = Field(default="", description="Captured standard output")
    stderr: str = Field(default="", description="Captured standard error")
    exit_status: int = Field(default=0, description="Process exit code")


class ProcessRunner(ABC):
    """Abstract base class for process runners."""

    @abstractmethod
    async def run(self, argv: Sequence[str], env: Optional[Mapping[str, str]] = None) -> CommandResult:
        """Run a command given as a discrete argument vector (no shell).

        Args:
            argv: Program and arguments
            env: Environment for the child process

        Returns:
            CommandResult on exit status 0

        Raises:
            ProcessError: On nonzero exit, spawn failure or timeout
        """

    @abstractmethod
    async def run_shell(self, command_line: str, env: Optional[Mapping[str, str]] = None) -> CommandResult:
        """Run a fully assembled command line through the system shell.

        Args:
            command_line: Shell command line
            env: Environment for the child process

        Returns:
            CommandResult on exit status 0

        Raises:
            ProcessError: On nonzero exit, spawn failure or timeout
        """


class SubprocessRunner(ProcessRunner):
    """Process runner backed by asyncio subprocesses."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize the runner.

        Args:
            timeout: Seconds to wait for a child before killing it (None waits forever)
        """
        self.timeout = timeout

    async def run(self, argv: Sequence[str], env: Optional[Mapping[str, str]] = None) -> CommandResult:
        argv = list(argv)
        if not argv:
            raise ProcessError("Empty command")
        logger.debug(f"Spawning {argv[0]} with {len(argv) - 1} argument(s)")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=dict(env) if env is not None else None,
            )
        except OSError as e:
            raise ProcessError(f"Failed to start {argv[0]}: {e}", stderr=str(e)) from e

        stdout, stderr = await self._communicate(process, argv[0])
        return CommandResult(argv=argv, stdout=stdout, stderr=stderr, exit_status=process.returncode)

    async def run_shell(self, command_line: str, env: Optional[Mapping[str, str]] = None) -> CommandResult:
        logger.debug("Spawning shell command")

        try:
            process = await asyncio.create_subprocess_shell(
                command_line,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=dict(env) if env is not None else None,
            )
        except OSError as e:
            raise ProcessError(f"Failed to start shell: {e}", stderr=str(e)) from e

        stdout, stderr = await self._communicate(process, "shell command")
        return CommandResult(command_line=command_line, stdout=stdout, stderr=stderr, exit_status=process.returncode)

    async def _communicate(self, process: asyncio.subprocess.Process, label: str) -> tuple[str, str]:
        """Wait for the child and decode its output.

        Raises:
            ProcessError: If the child times out or exits nonzero
        """
        try:
            out, err = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            logger.warning(f"{label} timed out after {self.timeout}s")
            raise ProcessError(f"{label} timed out after {self.timeout}s")

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")

        if process.returncode != 0:
            logger.debug(f"{label} exited with status {process.returncode}")
            message = stderr.strip() or f"{label} exited with status {process.returncode}"
            raise ProcessError(message, stderr=stderr, exit_status=process.returncode)

        return stdout, stderr
