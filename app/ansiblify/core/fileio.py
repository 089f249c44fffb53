"""Atomic file writes.

Every generated file is written to a temporary file in the destination
directory and then moved into place with os.replace(), so readers see either
the old or the new complete file. Temporary files carry a recognisable
prefix so an interrupted run can sweep them up.
"""

import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".ansiblify-"
TEMP_SUFFIX = ".tmp"


def atomic_write_text(path: Path, content: str) -> Path:
    """Write text to a file atomically.

    Args:
        path: Destination file. Parent directories are created if needed.
        content: Full file content.

    Returns:
        The destination path.

    Raises:
        OSError: If the temporary file cannot be created, written or moved.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=TEMP_PREFIX,
            suffix=TEMP_SUFFIX,
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            f.write(content)
        os.replace(tmp_path, path)
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise

    return path


def cleanup_temp_files(base_dir: Path) -> list[Path]:
    """Remove stray temporary files left behind by interrupted writes.

    Args:
        base_dir: Directory tree to sweep.

    Returns:
        Paths that were removed.
    """
    if not base_dir.is_dir():
        return []

    removed: list[Path] = []
    for tmp_path in base_dir.rglob(f"{TEMP_PREFIX}*{TEMP_SUFFIX}"):
        if not tmp_path.is_file():
            continue
        try:
            tmp_path.unlink()
            removed.append(tmp_path)
        except OSError as e:
            logger.warning("Could not remove temporary file %s: %s", tmp_path, e)

    if removed:
        logger.debug("Removed %d stray temporary file(s) under %s", len(removed), base_dir)
    return removed
