"""Top-level descriptors of the generated Ansible project.

The inventory, group variables, collection requirements and lint
configuration are rewritten on every generation run. site.yml is only
created when missing, so roles registered by earlier runs are kept.
"""

import logging

from ansiblify.core.config import AnsiblifyConfig
from ansiblify.core.fileio import atomic_write_text
from ansiblify.core.paths import OutputLayout
from ansiblify.core.playbook import ROLES_SENTINEL_LINE
from ansiblify.facts.base import HostFactsProvider

logger = logging.getLogger(__name__)

FALLBACK_INVENTORY_HOST = "localhost"


class ProjectError(Exception):
    """Raised when the project skeleton cannot be written."""


def render_playbook(config: AnsiblifyConfig) -> str:
    """Initial site.yml with an empty role list."""
    return (
        "---\n"
        f"- name: {config.playbook_name}\n"
        "  hosts: all\n"
        "  become: true\n"
        "  gather_facts: true\n"
        f"{ROLES_SENTINEL_LINE}\n"
    )


def render_inventory(host: str, config: AnsiblifyConfig) -> str:
    connection = "local" if host == FALLBACK_INVENTORY_HOST else "ssh"
    return (
        "---\n"
        "all:\n"
        "  hosts:\n"
        f"    {host}:\n"
        f"      ansible_connection: {connection}\n"
        f"      ansible_python_interpreter: {config.python_interpreter}\n"
    )


def render_group_vars(config: AnsiblifyConfig) -> str:
    return (
        "---\n"
        "# Default variables for all hosts\n"
        f"ansible_python_interpreter: {config.python_interpreter}\n"
        "ansible_become: true\n"
        "ansible_become_method: sudo\n"
        "\n"
        "# Default paths\n"
        "default_mode: '0755'\n"
        "default_owner: root\n"
        "default_group: root\n"
        "\n"
        "# Default settings\n"
        "always_run_handlers: true\n"
        "collect_facts: true\n"
    )


def render_requirements(config: AnsiblifyConfig) -> str:
    lines = ["---", "collections:"]
    lines.extend(f"  - {name}" for name in config.collections)
    lines.extend(["", "roles: []"])
    return "\n".join(lines) + "\n"


def render_lint_config(config: AnsiblifyConfig) -> str:
    return (
        "---\n"
        "skip_list:\n"
        "  - yaml[line-length]\n"
        "\n"
        "warn_list:\n"
        "  - yaml[truthy]\n"
        "  - command-instead-of-module\n"
        "  - no-changed-when\n"
        "\n"
        "use_default_rules: true\n"
        "offline: true\n"
        f"max_line_length: {config.lint_max_line_length}\n"
        "\n"
        "exclude_paths:\n"
        "  - .cache/\n"
        "  - .git/\n"
    )


def render_engine_config() -> str:
    return (
        "[defaults]\n"
        "inventory = ./inventory/hosts\n"
        "roles_path = ./roles\n"
        "host_key_checking = False\n"
        "retry_files_enabled = False\n"
        "stdout_callback = yaml\n"
        "\n"
        "[ssh_connection]\n"
        "pipelining = True\n"
    )


def resolve_inventory_host(config: AnsiblifyConfig, facts: HostFactsProvider) -> str:
    """Pick the inventory host: configured, detected primary IP, or localhost."""
    if config.inventory_host:
        return config.inventory_host
    detected = facts.primary_ip()
    if detected:
        return detected
    logger.warning("Could not detect primary IP, using %s", FALLBACK_INVENTORY_HOST)
    return FALLBACK_INVENTORY_HOST


def prepare_project(
    layout: OutputLayout,
    config: AnsiblifyConfig,
    facts: HostFactsProvider,
) -> bool:
    """Create the project skeleton.

    Args:
        layout: Output layout to populate.
        config: Generation settings.
        facts: Host facts (primary IP detection).

    Returns:
        True if site.yml was created by this call.

    Raises:
        ProjectError: If a directory or descriptor cannot be written.
    """
    host = resolve_inventory_host(config, facts)
    try:
        for directory in (layout.roles_dir, layout.group_vars_dir, layout.inventory_dir):
            directory.mkdir(parents=True, exist_ok=True)

        atomic_write_text(layout.inventory_path, render_inventory(host, config))
        atomic_write_text(layout.group_vars_path, render_group_vars(config))
        atomic_write_text(layout.requirements_path, render_requirements(config))
        atomic_write_text(layout.lint_config_path, render_lint_config(config))

        if layout.playbook_path.exists():
            return False
        atomic_write_text(layout.playbook_path, render_playbook(config))
    except OSError as e:
        raise ProjectError(f"Failed to prepare project in {layout.base_dir}: {e}") from e

    logger.debug("Created %s", layout.playbook_path)
    return True


def write_engine_config(layout: OutputLayout) -> None:
    """Write ansible.cfg.

    Raises:
        ProjectError: If the file cannot be written.
    """
    try:
        atomic_write_text(layout.engine_config_path, render_engine_config())
    except OSError as e:
        raise ProjectError(f"Failed to write {layout.engine_config_path}: {e}") from e
