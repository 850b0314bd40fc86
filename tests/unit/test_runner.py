"""Unit tests for external command execution."""

import pytest

from notebooks_infra.errors import CommandFailed
from notebooks_infra.runner import EXIT_NOT_FOUND, EXIT_TIMEOUT, CommandResult, CommandRunner


@pytest.fixture
def runner():
    return CommandRunner()


def test_successful_command(runner):
    """Test that stdout is captured for a zero exit."""
    result = runner.run(["echo", "hello"])
    assert result.ok
    assert result.exit_code == 0
    assert result.output.strip() == "hello"
    assert result.argv == ("echo", "hello")


def test_failing_command_reports_exit_code(runner):
    """Test that a non-zero exit is returned rather than raised."""
    result = runner.run(["sh", "-c", "echo boom; exit 3"])
    assert not result.ok
    assert result.exit_code == 3
    assert "boom" in result.output


def test_missing_program_is_exit_127(runner):
    """Test that an unknown program maps to the shell's not-found status."""
    result = runner.run(["definitely-not-a-real-program-xyz"])
    assert result.exit_code == EXIT_NOT_FOUND
    assert "command not found" in result.output


def test_timeout_is_exit_124(runner):
    """Test that a command exceeding its timeout is killed and reported."""
    result = runner.run(["sleep", "5"], timeout=1)
    assert result.exit_code == EXIT_TIMEOUT


def test_stderr_is_combined_by_default(runner):
    """Test that stderr is merged into the captured output."""
    result = runner.run(["sh", "-c", "echo out; echo err >&2"])
    assert "out" in result.output
    assert "err" in result.output


def test_stderr_can_be_separated(runner):
    """Test that parsed output is not polluted by stderr."""
    result = runner.run(["sh", "-c", "echo out; echo err >&2"], combine_output=False)
    assert result.output.strip() == "out"


def test_input_is_written_to_stdin(runner):
    """Test that secrets can be passed on stdin instead of argv."""
    result = runner.run(["cat"], input="s3cret")
    assert result.output == "s3cret"


def test_env_is_layered_over_current_environment(runner):
    """Test that extra variables reach the command."""
    result = runner.run(["sh", "-c", 'echo "$IMG"'], env={"IMG": "localhost/x:y"})
    assert result.output.strip() == "localhost/x:y"


def test_cwd_is_respected(runner, tmp_path):
    """Test that the command runs in the requested directory."""
    result = runner.run(["pwd"], cwd=tmp_path)
    assert result.output.strip() == str(tmp_path)


def test_run_checked_raises_on_failure(runner):
    """Test that the checked variant raises CommandFailed."""
    with pytest.raises(CommandFailed) as exc_info:
        runner.run_checked(["false"])
    assert exc_info.value.exit_code == 1


def test_which(runner):
    """Test PATH lookup for present and missing programs."""
    assert runner.which("sh")
    assert not runner.which("definitely-not-a-real-program-xyz")


def test_command_result_check():
    """Test that check returns the result itself on success."""
    result = CommandResult(("true",), 0, "")
    assert result.check() is result
    with pytest.raises(CommandFailed):
        CommandResult(("false",), 1, "nope").check()
