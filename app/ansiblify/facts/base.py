"""Abstract interface for host facts.

Exporters never touch the live system directly. They resolve host paths,
run commands and enumerate users through a HostFactsProvider, so the whole
pipeline can run against a fake host in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


class FactsError(Exception):
    """Raised when a host fact cannot be collected."""


class CommandUnavailableError(FactsError):
    """Raised when a required command is not installed."""


@dataclass(frozen=True, slots=True)
class HostUser:
    """A user account on the host.

    Attributes:
        name: Login name.
        uid: Numeric user id.
        gid: Numeric primary group id.
        home: Home directory as recorded in passwd (absolute host path).
    """

    name: str
    uid: int
    gid: int
    home: str


class HostFactsProvider(ABC):
    """Abstract base class for host fact collection.

    Example:
        >>> facts = SystemFacts()
        >>> hosts_file = facts.resolve("/etc/hosts")
        >>> if facts.command_exists("dpkg-query"):
        ...     listing = facts.run(["dpkg-query", "-W"])
    """

    @abstractmethod
    def resolve(self, path: str) -> Path:
        """Map an absolute host path to a readable local path.

        Args:
            path: Absolute path on the host (e.g. ``/etc/hosts``).

        Returns:
            Local path to read from.
        """

    @abstractmethod
    def command_exists(self, name: str) -> bool:
        """Check if a command is available on the host."""

    @abstractmethod
    def run(self, args: list[str], *, check: bool = True) -> str:
        """Run a command and return its standard output.

        Args:
            args: Command and arguments.
            check: If False, a non-zero exit still returns the output.

        Raises:
            CommandUnavailableError: If the command is not installed.
            FactsError: If check is True and the command exits non-zero.
        """

    @abstractmethod
    def users(self) -> list[HostUser]:
        """Return all accounts from the host's passwd database."""

    @abstractmethod
    def primary_ip(self) -> str | None:
        """Return the host's primary IP address, or None if unknown."""

    def real_users(self, minimum_uid: int = 1000) -> list[HostUser]:
        """Return login users plus root.

        Real users have ``uid >= minimum_uid`` and are not ``nobody`` (65534).
        """
        return [
            user
            for user in self.users()
            if (user.uid >= minimum_uid and user.uid != 65534) or user.name == "root"
        ]


def parse_passwd(text: str) -> list[HostUser]:
    """Parse passwd(5) formatted text.

    Malformed lines are skipped.
    """
    users: list[HostUser] = []
    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        parts = line.split(":")
        if len(parts) < 7:
            continue
        try:
            uid = int(parts[2])
            gid = int(parts[3])
        except ValueError:
            continue
        users.append(HostUser(name=parts[0], uid=uid, gid=gid, home=parts[5]))
    return users
