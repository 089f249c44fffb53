"""Role scaffolding.

Creates the on-disk skeleton of one role: the standard sub-directories and
a fixed set of placeholder descriptors. Content depends only on the role
key, so re-running overwrites the placeholders with identical bytes.
"""

import logging
import re
from pathlib import Path

from ansiblify.core.fileio import atomic_write_text

logger = logging.getLogger(__name__)

ROLE_KEY_PATTERN = re.compile(r"[a-z_]+")

ROLE_SUBDIRS: tuple[str, ...] = (
    "tasks",
    "handlers",
    "defaults",
    "vars",
    "files",
    "templates",
    "meta",
)


class ScaffoldError(Exception):
    """Raised when a role skeleton cannot be created."""


def _placeholders(key: str) -> dict[str, str]:
    """Placeholder descriptor files for a role, keyed by relative path."""
    return {
        "tasks/main.yml": (
            "---\n"
            f"- name: Placeholder task for {key}\n"
            "  ansible.builtin.debug:\n"
            f'    msg: "Role {key} is being executed"\n'
        ),
        "handlers/main.yml": f"---\n# Handlers for {key}\n",
        "defaults/main.yml": f"---\n# Default variables for {key}\n{key}_enabled: true\n",
        "vars/main.yml": f"---\n# Variables for {key}\n",
        "meta/main.yml": (
            "---\n"
            "galaxy_info:\n"
            "  author: Server Configuration Generator\n"
            f"  description: Auto-generated role for {key}\n"
            "  license: MIT\n"
            '  min_ansible_version: "2.9"\n'
            "  platforms:\n"
            "    - name: Ubuntu\n"
            "      versions:\n"
            "        - all\n"
            "  galaxy_tags: []\n"
            "dependencies: []\n"
        ),
    }


def ensure_unit(roles_dir: Path, key: str) -> Path:
    """Create or refresh the skeleton of a role.

    Args:
        roles_dir: Directory holding all roles.
        key: Role key, matching ``[a-z_]+``.

    Returns:
        Path to the role directory.

    Raises:
        ScaffoldError: If the key is invalid or the filesystem refuses a write.
    """
    if not ROLE_KEY_PATTERN.fullmatch(key):
        msg = f"Invalid role key '{key}': expected lowercase letters and underscores"
        raise ScaffoldError(msg)

    unit_dir = roles_dir / key
    try:
        for subdir in ROLE_SUBDIRS:
            (unit_dir / subdir).mkdir(parents=True, exist_ok=True)
        for relative, content in _placeholders(key).items():
            atomic_write_text(unit_dir / relative, content)
    except OSError as e:
        raise ScaffoldError(f"Failed to scaffold role {key} in {unit_dir}: {e}") from e

    logger.debug("Scaffolded role %s at %s", key, unit_dir)
    return unit_dir
