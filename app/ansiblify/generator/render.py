"""Task fragment rendering.

Overwrites a role's task files with the fixed fragment for its module.
The role must already be scaffolded.
"""

import logging
from pathlib import Path

from ansiblify.core.fileio import atomic_write_text
from ansiblify.generator.tasks import TASK_FILES

logger = logging.getLogger(__name__)


class GenerateError(Exception):
    """Raised when a role's task files cannot be rendered."""


def render(unit_dir: Path, key: str) -> list[Path]:
    """Render the task files of a module into its role.

    Args:
        unit_dir: Scaffolded role directory.
        key: Module key.

    Returns:
        Paths of the written task files.

    Raises:
        GenerateError: If the key has no fragment, the role was not
            scaffolded, or a file cannot be written.
    """
    fragments = TASK_FILES.get(key)
    if fragments is None:
        raise GenerateError(f"No task fragment for module '{key}'")

    tasks_dir = unit_dir / "tasks"
    if not tasks_dir.is_dir():
        raise GenerateError(f"Role {key} is not scaffolded: {tasks_dir} missing")

    written: list[Path] = []
    try:
        for name, content in fragments.items():
            written.append(atomic_write_text(tasks_dir / name, content))
    except OSError as e:
        raise GenerateError(f"Failed to render tasks for {key}: {e}") from e

    logger.debug("Rendered %d task file(s) for %s", len(written), key)
    return written
