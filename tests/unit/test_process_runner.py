"""Tests for SubprocessRunner."""

import sys

import pytest

from tool_adapters.errors import ProcessError
from tool_adapters.process import SubprocessRunner


class TestSubprocessRunner:
    """Test SubprocessRunner against real child processes."""

    @pytest.mark.asyncio
    async def test_run_captures_stdout(self):
        """Test a successful command returns its output."""
        runner = SubprocessRunner()
        result = await runner.run([sys.executable, "-c", "print('hello')"])

        assert result.exit_status == 0
        assert result.stdout.strip() == "hello"
        assert result.argv[0] == sys.executable

    @pytest.mark.asyncio
    async def test_argument_is_not_shell_interpreted(self):
        """Test arguments reach the child verbatim."""
        payload = 'SELECT 1; -- " $HOME `id`'
        runner = SubprocessRunner()
        result = await runner.run([sys.executable, "-c", "import sys; print(sys.argv[1])", payload])

        assert result.stdout.rstrip("\n") == payload

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self):
        """Test a failing command raises ProcessError with stderr and status."""
        runner = SubprocessRunner()
        code = "import sys; sys.stderr.write('boom'); sys.exit(3)"

        with pytest.raises(ProcessError) as exc_info:
            await runner.run([sys.executable, "-c", code])

        assert exc_info.value.exit_status == 3
        assert exc_info.value.stderr == "boom"
        assert str(exc_info.value) == "boom"

    @pytest.mark.asyncio
    async def test_missing_executable_raises(self):
        """Test a spawn failure raises ProcessError without exit status."""
        runner = SubprocessRunner()

        with pytest.raises(ProcessError, match="Failed to start") as exc_info:
            await runner.run(["definitely-not-a-real-binary-xyz"])

        assert exc_info.value.exit_status is None

    @pytest.mark.asyncio
    async def test_empty_command_raises(self):
        with pytest.raises(ProcessError, match="Empty command"):
            await SubprocessRunner().run([])

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self):
        """Test a slow command is killed after the timeout."""
        runner = SubprocessRunner(timeout=0.2)

        with pytest.raises(ProcessError, match="timed out"):
            await runner.run([sys.executable, "-c", "import time; time.sleep(10)"])

    @pytest.mark.asyncio
    async def test_env_is_passed(self):
        """Test the child sees the given environment."""
        runner = SubprocessRunner()
        env = {"TOOL_ADAPTERS_TEST": "42", "PATH": "/usr/bin:/bin"}
        result = await runner.run(
            [sys.executable, "-c", "import os; print(os.environ['TOOL_ADAPTERS_TEST'])"], env=env
        )

        assert result.stdout.strip() == "42"

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell required")
    async def test_run_shell(self):
        """Test shell mode runs a command line through the shell."""
        runner = SubprocessRunner()
        result = await runner.run_shell('echo "a b"')

        assert result.stdout.strip() == "a b"
        assert result.command_line == 'echo "a b"'

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell required")
    async def test_run_shell_failure(self):
        runner = SubprocessRunner()

        with pytest.raises(ProcessError) as exc_info:
            await runner.run_shell("exit 7")

        assert exc_info.value.exit_status == 7
