"""Generator configuration and settings.

This module provides the configuration model and I/O functions for
ansiblify. Configuration is stored in ~/.config/ansiblify/config.toml;
a missing file means all defaults apply.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ansiblify.core.paths import DEFAULT_OUTPUT_DIR, get_config_path

# Collections referenced by the generated task fragments
DEFAULT_COLLECTIONS: tuple[str, ...] = (
    "community.general",
    "ansible.posix",
    "community.docker",
    "community.libvirt",
    "ansible.utils",
)


class AnsiblifyConfig(BaseModel):
    """Configuration for project generation.

    Attributes:
        output_dir: Root directory of the generated Ansible project.
        playbook_name: Play name written to site.yml.
        collections: Galaxy collections listed in requirements.yml.
        python_interpreter: Interpreter path for the managed host.
        inventory_host: Inventory host entry. None detects the primary IP.
        lint_max_line_length: max_line_length in .ansible-lint.
        minimum_uid: Lowest UID treated as a real (non-system) user.
    """

    model_config = ConfigDict(extra="forbid")

    output_dir: Annotated[
        str,
        Field(min_length=1, description="Output directory for the Ansible project"),
    ] = DEFAULT_OUTPUT_DIR
    playbook_name: Annotated[
        str,
        Field(min_length=1, description="Name of the play in site.yml"),
    ] = "Server Configuration"
    collections: Annotated[
        list[str],
        Field(description="Galaxy collections required by the generated roles"),
    ] = list(DEFAULT_COLLECTIONS)
    python_interpreter: Annotated[
        str,
        Field(description="ansible_python_interpreter for the managed host"),
    ] = "/usr/bin/python3"
    inventory_host: Annotated[
        str | None,
        Field(description="Inventory host (None = detect primary IP)"),
    ] = None
    lint_max_line_length: Annotated[
        int,
        Field(ge=80, le=400, description="ansible-lint max line length (80-400)"),
    ] = 160
    minimum_uid: Annotated[
        int,
        Field(ge=0, description="Lowest UID exported as a real user"),
    ] = 1000

    @field_validator("collections")
    @classmethod
    def validate_collections(cls, v: list[str]) -> list[str]:
        """Collections must be namespace.name pairs without duplicates."""
        seen: set[str] = set()
        for name in v:
            namespace, _, collection = name.partition(".")
            if not namespace or not collection:
                msg = f"Invalid collection name '{name}' (expected namespace.name)"
                raise ValueError(msg)
            if name in seen:
                msg = f"Duplicate collection '{name}'"
                raise ValueError(msg)
            seen.add(name)
        return v

    @property
    def output_path(self) -> Path:
        """Output directory as a Path."""
        return Path(self.output_dir)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> AnsiblifyConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated AnsiblifyConfig. Defaults when the file does not exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or violates the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return AnsiblifyConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return AnsiblifyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e


def save_config(config: AnsiblifyConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The AnsiblifyConfig to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(_config_to_dict(config), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: AnsiblifyConfig) -> dict[str, object]:
    """Convert AnsiblifyConfig to a dictionary for TOML serialization.

    TOML has no null, so unset optional values are omitted.
    """
    return config.model_dump(exclude_none=True)
