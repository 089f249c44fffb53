"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules, most notably
FakeFacts: a HostFactsProvider backed by a directory tree and canned
command output instead of the live system.
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from ansiblify.core.config import AnsiblifyConfig
from ansiblify.core.paths import OutputLayout
from ansiblify.facts.base import CommandUnavailableError, FactsError, HostFactsProvider, HostUser
from ansiblify.utils.shell import CommandResult

PLAYBOOK_HEADER = """\
---
- name: Server Configuration
  hosts: all
  become: true
  gather_facts: true
"""


class FakeFacts(HostFactsProvider):
    """Test double resolving host paths under a temporary root."""

    def __init__(
        self,
        root: Path,
        *,
        commands: dict[str, str | CommandResult | Exception] | None = None,
        users: list[HostUser] | None = None,
        ip: str | None = "192.0.2.10",
    ) -> None:
        self.root = root
        self.commands = commands or {}
        self._users = users or []
        self.ip = ip
        self.calls: list[list[str]] = []

    def resolve(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    def run(self, args: list[str], *, check: bool = True) -> str:
        self.calls.append(args)
        if args[0] not in self.commands:
            raise CommandUnavailableError(f"Command not available: {args[0]}")
        output = self.commands[args[0]]
        if isinstance(output, Exception):
            raise output
        if isinstance(output, CommandResult):
            if check and not output.success:
                raise FactsError(f"{args[0]} failed ({output.returncode})")
            return output.stdout
        return output

    def users(self) -> list[HostUser]:
        return list(self._users)

    def primary_ip(self) -> str | None:
        return self.ip


def write_file(path: Path, content: str = "") -> Path:
    """Create a file and its parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """Empty fake host filesystem root."""
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture
def fake_facts(host_root: Path) -> FakeFacts:
    """FakeFacts with no commands and no users."""
    return FakeFacts(host_root)


@pytest.fixture
def make_facts(host_root: Path) -> Callable[..., FakeFacts]:
    """Factory for FakeFacts rooted at host_root."""

    def _make(**kwargs: object) -> FakeFacts:
        return FakeFacts(host_root, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def layout(tmp_path: Path) -> OutputLayout:
    """Output layout in a temporary directory (not created)."""
    return OutputLayout(tmp_path / "server_config")


@pytest.fixture
def config() -> AnsiblifyConfig:
    """Default configuration."""
    return AnsiblifyConfig()


@pytest.fixture
def playbook(tmp_path: Path) -> Path:
    """site.yml with an empty role list."""
    return write_file(tmp_path / "site.yml", PLAYBOOK_HEADER + "  roles: []\n")
