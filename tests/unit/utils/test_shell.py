"""Unit tests for shell execution utilities."""

import os
import subprocess
from unittest.mock import MagicMock, patch

import pytest
from ansiblify.utils.shell import PLAIN_OUTPUT_ENV, CommandResult, command_exists, run_command


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        """success reflects the exit code."""
        assert CommandResult(stdout="", stderr="", returncode=0).success
        assert not CommandResult(stdout="", stderr="", returncode=2).success

    def test_output_combines_streams(self) -> None:
        """output joins stripped stdout and stderr."""
        result = CommandResult(stdout="ok\n", stderr="  warn \n", returncode=0)

        assert result.output == "ok\nwarn"
        assert CommandResult(stdout="", stderr="err\n", returncode=1).output == "err"

    def test_command_is_shell_quoted(self) -> None:
        """command quotes arguments for display."""
        result = CommandResult(stdout="", stderr="", returncode=0, args=("ls", "my dir"))

        assert result.command == "ls 'my dir'"


class TestRunCommand:
    """Tests for run_command function."""

    @patch("ansiblify.utils.shell.subprocess.run")
    def test_passes_arguments(self, mock_run: MagicMock) -> None:
        """run_command forwards timeout and cwd and records the args."""
        mock_run.return_value = MagicMock(stdout="out", stderr="", returncode=0)

        result = run_command(["ansible-lint", "site.yml"], timeout=None, cwd="/srv")

        assert result.stdout == "out"
        assert result.args == ("ansible-lint", "site.yml")
        assert mock_run.call_args.kwargs["timeout"] is None
        assert mock_run.call_args.kwargs["cwd"] == "/srv"
        assert mock_run.call_args.kwargs["capture_output"] is True
        assert mock_run.call_args.kwargs["env"] is None
        assert mock_run.call_args.kwargs["errors"] == "replace"

    @patch("ansiblify.utils.shell.subprocess.run")
    def test_merges_env(self, mock_run: MagicMock) -> None:
        """Extra variables are merged over the inherited environment."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        with patch.dict(os.environ, {"HOME": "/root"}):
            run_command(["ansible-playbook", "--version"], env=PLAIN_OUTPUT_ENV)

        env = mock_run.call_args.kwargs["env"]
        assert env["ANSIBLE_NOCOLOR"] == "1"
        assert env["HOME"] == "/root"

    def test_raises_file_not_found(self) -> None:
        """run_command raises FileNotFoundError for missing executables."""
        with pytest.raises(FileNotFoundError):
            run_command(["definitely-not-a-real-command-xyz"])

    @patch("ansiblify.utils.shell.subprocess.run")
    def test_check_raises(self, mock_run: MagicMock) -> None:
        """check=True propagates CalledProcessError."""
        mock_run.side_effect = subprocess.CalledProcessError(1, ["false"])

        with pytest.raises(subprocess.CalledProcessError):
            run_command(["false"], check=True)


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("ansiblify.utils.shell.shutil.which", return_value="/usr/bin/ansible-playbook")
    def test_found(self, mock_which: MagicMock) -> None:
        """command_exists is True when the executable is on PATH."""
        assert command_exists("ansible-playbook")

    @patch("ansiblify.utils.shell.shutil.which", return_value=None)
    def test_missing(self, mock_which: MagicMock) -> None:
        """command_exists is False otherwise."""
        assert not command_exists("ansible-lint")


class TestRunCommandDecoding:
    """Tests for output decoding in run_command."""

    def test_non_utf8_output_is_replaced(self) -> None:
        """Undecodable bytes in command output do not raise."""
        result = run_command(["printf", "caf\\351\\n"])

        assert result.success
        assert result.stdout == "caf\ufffd\n"
