"""Shell execution utilities.

Every external tool ansiblify touches (dpkg-query, pip, npm, hostname and the
Ansible CLIs) is run through run_command so output is captured and each
invocation shows up in the debug log.
"""

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Keeps Ansible output free of ANSI escapes when it is captured for reports.
PLAIN_OUTPUT_ENV: Mapping[str, str] = {"ANSIBLE_NOCOLOR": "1", "ANSIBLE_FORCE_COLOR": "0"}


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
        args: The command line that produced this result.
    """

    stdout: str
    stderr: str
    returncode: int
    args: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)

    @property
    def command(self) -> str:
        """The command line, shell-quoted for display."""
        return shlex.join(self.args)


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Execute a command and capture its output.

    Output is decoded as text; undecodable bytes become U+FFFD.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait. None waits until the command exits.
        cwd: Working directory for the command. If None, uses current directory.
        env: Extra environment variables, merged over the current environment.

    Returns:
        CommandResult with stdout, stderr, returncode and the executed args.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    logger.debug("Running %s (cwd=%s)", shlex.join(args), cwd or ".")
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        errors="replace",
        check=check,
        timeout=timeout,
        cwd=cwd,
        env={**os.environ, **env} if env else None,
    )
    if result.returncode != 0:
        logger.debug("%s exited with %d", args[0], result.returncode)
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
        args=tuple(args),
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None
