"""Role registration in the top-level playbook (site.yml).

site.yml is shared by every module of a run. It is treated as an ordered
sequence of lines and mutated by pattern matching, never loaded as a YAML
tree. The role list it carries has two shapes::

    roles: []          <- empty list (sentinel)

    roles:             <- header
      - users          <- items, one per line
      - ssh

Registration is idempotent and append-only. New keys go after the last
item; every other line is passed through unchanged. Each rewrite goes to a
temporary file that atomically replaces the original.
"""

import logging
import re
from pathlib import Path

from ansiblify.core.fileio import atomic_write_text

logger = logging.getLogger(__name__)

# Empty role list: the whole line is "  roles: []".
ROLES_SENTINEL = re.compile(r"^  roles: \[\]\s*$")
# Introducing line of a non-empty role list.
ROLES_HEADER = re.compile(r"^  roles:\s*$")
# One role entry. The list ends at the first line that does not match.
ROLE_ITEM = re.compile(r"^    - (?P<name>\S+)\s*$")

ROLES_SENTINEL_LINE = "  roles: []"
ROLES_HEADER_LINE = "  roles:"
ROLE_ENTRY_FORMAT = "    - {key}"


class PlaybookError(Exception):
    """Base exception for playbook mutation errors."""


class PlaybookNotFoundError(PlaybookError):
    """Raised when site.yml does not exist."""


class PlaybookFormatError(PlaybookError):
    """Raised when site.yml has neither an empty role list nor a role list header."""


def format_role_entry(key: str) -> str:
    """Format a role list entry line."""
    return ROLE_ENTRY_FORMAT.format(key=key)


def _read_lines(path: Path) -> tuple[list[str], bool]:
    """Read a playbook as lines.

    Returns:
        Tuple of (lines without terminators, whether the text ended with a newline).
    """
    if not path.is_file():
        raise PlaybookNotFoundError(f"Playbook not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PlaybookError(f"Failed to read playbook {path}: {e}") from e
    return text.splitlines(), text.endswith("\n")


def _write_lines(path: Path, lines: list[str], trailing_newline: bool) -> None:
    text = "\n".join(lines)
    if trailing_newline or not text:
        text += "\n"
    try:
        atomic_write_text(path, text)
    except OSError as e:
        raise PlaybookError(f"Failed to write playbook {path}: {e}") from e


def _find_sentinel(lines: list[str]) -> int | None:
    for index, line in enumerate(lines):
        if ROLES_SENTINEL.match(line):
            return index
    return None


def _find_role_list(lines: list[str]) -> tuple[int, int] | None:
    """Locate the role list.

    Returns:
        Tuple of (header index, end index) where the items are
        ``lines[header + 1:end]``, or None if there is no header.
    """
    for index, line in enumerate(lines):
        if ROLES_HEADER.match(line):
            end = index + 1
            while end < len(lines) and ROLE_ITEM.match(lines[end]):
                end += 1
            return index, end
    return None


def _roles_in(lines: list[str]) -> list[str]:
    if _find_sentinel(lines) is not None:
        return []
    bounds = _find_role_list(lines)
    if bounds is None:
        return []
    header, end = bounds
    roles: list[str] = []
    for line in lines[header + 1 : end]:
        match = ROLE_ITEM.match(line)
        if match is not None:
            roles.append(match.group("name"))
    return roles


def registered_roles(path: Path) -> list[str]:
    """List the roles registered in a playbook, in document order.

    Raises:
        PlaybookNotFoundError: If the playbook does not exist.
    """
    lines, _ = _read_lines(path)
    return _roles_in(lines)


def register(path: Path, key: str) -> bool:
    """Register a role in the playbook.

    Args:
        path: Path to site.yml.
        key: Role key to add.

    Returns:
        True if the document changed, False if the role was already listed.

    Raises:
        PlaybookNotFoundError: If the playbook does not exist.
        PlaybookFormatError: If the playbook has no role list.
        PlaybookError: If the playbook cannot be rewritten.
    """
    lines, trailing_newline = _read_lines(path)

    if key in _roles_in(lines):
        logger.debug("Role %s already registered in %s", key, path)
        return False

    entry = format_role_entry(key)
    sentinel = _find_sentinel(lines)
    if sentinel is not None:
        updated = [*lines[:sentinel], ROLES_HEADER_LINE, entry, *lines[sentinel + 1 :]]
    else:
        bounds = _find_role_list(lines)
        if bounds is None:
            raise PlaybookFormatError(f"No role list found in {path}")
        _, end = bounds
        updated = [*lines[:end], entry, *lines[end:]]

    _write_lines(path, updated, trailing_newline)
    logger.debug("Registered role %s in %s", key, path)
    return True


def list_role_dirs(roles_dir: Path) -> list[str]:
    """Role directory names under roles_dir, sorted lexicographically.

    Hidden directories are ignored.
    """
    if not roles_dir.is_dir():
        return []
    return sorted(p.name for p in roles_dir.iterdir() if p.is_dir() and not p.name.startswith("."))


def finalize_all(path: Path, roles_dir: Path) -> list[str]:
    """Rewrite the role list from the role directories on disk.

    The list is replaced wholesale with the directory names in lexicographic
    order, independent of the order roles were registered in. Lines outside
    the role list are preserved.

    Args:
        path: Path to site.yml.
        roles_dir: Directory holding all roles.

    Returns:
        The role keys now listed.

    Raises:
        PlaybookNotFoundError: If the playbook does not exist.
        PlaybookFormatError: If the playbook has no role list.
        PlaybookError: If the playbook cannot be rewritten.
    """
    lines, trailing_newline = _read_lines(path)
    roles = list_role_dirs(roles_dir)

    if roles:
        block = [ROLES_HEADER_LINE, *(format_role_entry(key) for key in roles)]
    else:
        block = [ROLES_SENTINEL_LINE]

    sentinel = _find_sentinel(lines)
    if sentinel is not None:
        updated = [*lines[:sentinel], *block, *lines[sentinel + 1 :]]
    else:
        bounds = _find_role_list(lines)
        if bounds is None:
            raise PlaybookFormatError(f"No role list found in {path}")
        header, end = bounds
        updated = [*lines[:header], *block, *lines[end:]]

    if updated != lines:
        _write_lines(path, updated, trailing_newline)
    logger.debug("Finalized role list in %s: %s", path, ", ".join(roles) or "(empty)")
    return roles
