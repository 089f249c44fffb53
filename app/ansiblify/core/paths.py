"""Path management for ansiblify.

Two families of paths live here:

- XDG-compliant application paths (the user config file).
- The layout of a generated Ansible project (``OutputLayout``).

XDG defaults:
- Config: ~/.config/ansiblify/
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "ansiblify"

# Default output directory, relative to the working directory
DEFAULT_OUTPUT_DIR = "server_config"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/ansiblify/ (or XDG_CONFIG_HOME/ansiblify/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_config_path() -> Path:
    """Get the default config file path.

    Returns:
        Path to ~/.config/ansiblify/config.toml.
    """
    return get_config_dir() / "config.toml"


@dataclass(frozen=True, slots=True)
class OutputLayout:
    """Paths of a generated Ansible project.

    Attributes:
        base_dir: Root output directory.
    """

    base_dir: Path

    @property
    def roles_dir(self) -> Path:
        """Unit collection directory, one role per module."""
        return self.base_dir / "roles"

    @property
    def group_vars_dir(self) -> Path:
        return self.base_dir / "group_vars"

    @property
    def inventory_dir(self) -> Path:
        return self.base_dir / "inventory"

    @property
    def playbook_path(self) -> Path:
        """Top-level manifest document listing the active roles."""
        return self.base_dir / "site.yml"

    @property
    def inventory_path(self) -> Path:
        return self.inventory_dir / "hosts"

    @property
    def group_vars_path(self) -> Path:
        return self.group_vars_dir / "all.yml"

    @property
    def requirements_path(self) -> Path:
        return self.base_dir / "requirements.yml"

    @property
    def lint_config_path(self) -> Path:
        return self.base_dir / ".ansible-lint"

    @property
    def engine_config_path(self) -> Path:
        return self.base_dir / "ansible.cfg"

    def unit_dir(self, key: str) -> Path:
        """Role directory for a module key."""
        return self.roles_dir / key

    def exists(self) -> bool:
        """Check if the output directory exists."""
        return self.base_dir.is_dir()
