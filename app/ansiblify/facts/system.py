"""Live-host facts provider.

Reads host files below a root directory (``/`` on a real system) and runs
commands through the shell utilities.
"""

import logging
from pathlib import Path

from ansiblify.facts.base import (
    CommandUnavailableError,
    FactsError,
    HostFactsProvider,
    HostUser,
    parse_passwd,
)
from ansiblify.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class SystemFacts(HostFactsProvider):
    """Facts provider backed by the running system.

    Attributes:
        root: Directory that host paths are resolved against.
    """

    def __init__(self, root: Path = Path("/"), *, timeout: float | None = None) -> None:
        """Initialize the provider.

        Args:
            root: Directory that absolute host paths are resolved against.
            timeout: Per-command timeout in seconds. None waits indefinitely.
        """
        self.root = root
        self._timeout = timeout

    def resolve(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    def command_exists(self, name: str) -> bool:
        return command_exists(name)

    def run(self, args: list[str], *, check: bool = True) -> str:
        """Run a command and return its standard output.

        Raises:
            CommandUnavailableError: If the executable is not installed.
            FactsError: If check is True and the command exits non-zero.
        """
        if not self.command_exists(args[0]):
            raise CommandUnavailableError(f"Command not available: {args[0]}")

        try:
            result = run_command(args, timeout=self._timeout)
        except FileNotFoundError as e:
            raise CommandUnavailableError(f"Command not available: {args[0]}") from e

        if not result.success:
            if check:
                msg = f"{' '.join(args)} failed ({result.returncode}): {result.stderr.strip()}"
                raise FactsError(msg)
            logger.debug("%s exited with %d, keeping output", args[0], result.returncode)
        return result.stdout

    def users(self) -> list[HostUser]:
        passwd = self.resolve("/etc/passwd")
        try:
            # GECOS fields are often Latin-1; undecodable bytes survive as surrogates.
            return parse_passwd(passwd.read_text(encoding="utf-8", errors="surrogateescape"))
        except OSError as e:
            raise FactsError(f"Cannot read {passwd}: {e}") from e

    def primary_ip(self) -> str | None:
        """Return the first address reported by ``hostname -I``."""
        try:
            output = self.run(["hostname", "-I"])
        except FactsError as e:
            logger.debug("Primary IP detection failed: %s", e)
            return None
        addresses = output.split()
        return addresses[0] if addresses else None
