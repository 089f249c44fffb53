"""Abstract base class for module exporters.

An exporter snapshots host state into the ``files/`` directory of a role.
Each exporter is a list of named, independent steps: a failing step is
recorded in the returned ExportErrorSet and the remaining steps still run.
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from ansiblify.facts.base import FactsError, HostFactsProvider
from ansiblify.models.export import ExportErrorSet

logger = logging.getLogger(__name__)

# Errors that mark a step as failed instead of aborting the run. Anything
# else (disk full, read-only output) propagates.
ADVISORY_ERRORS: tuple[type[BaseException], ...] = (
    FactsError,
    PermissionError,
    FileNotFoundError,
    shutil.Error,
)


class ExportStepError(Exception):
    """Raised by a step whose sources are missing or unusable."""


@dataclass(frozen=True, slots=True)
class ExportStep:
    """A named sub-export.

    Attributes:
        name: Step name reported on failure (e.g. ``cron_configs``).
        run: Callable receiving the role's ``files/`` directory.
    """

    name: str
    run: Callable[[Path], None]


@dataclass(frozen=True, slots=True)
class Source:
    """A host path copied verbatim by a step.

    Attributes:
        path: Absolute host path.
        required: A missing required source fails the step.
        contents_only: For directories, copy the children instead of the directory.
        dest_name: Name in the destination directory. Defaults to the basename.
    """

    path: str
    required: bool = True
    contents_only: bool = False
    dest_name: str | None = None


class Exporter(ABC):
    """Abstract base class for all module exporters.

    Example:
        >>> exporter = SystemExporter(SystemFacts())
        >>> errors = exporter.export(Path("server_config/roles/system"))
        >>> errors.failed_steps
        ['snmp_configs']
    """

    module: ClassVar[str]

    def __init__(self, facts: HostFactsProvider, *, minimum_uid: int = 1000) -> None:
        """Initialize the exporter.

        Args:
            facts: Provider used for every host access.
            minimum_uid: Lowest UID treated as a real user.
        """
        self._facts = facts
        self._minimum_uid = minimum_uid

    @abstractmethod
    def steps(self) -> list[ExportStep]:
        """Return the sub-exports of this module, in execution order."""

    def export(self, unit_dir: Path) -> ExportErrorSet:
        """Run every step and collect the failures.

        Args:
            unit_dir: Role directory; output goes to ``unit_dir/files``.

        Returns:
            ExportErrorSet naming the failed steps.

        Raises:
            OSError: On filesystem failures unrelated to the host sources.
        """
        files_dir = unit_dir / "files"
        files_dir.mkdir(parents=True, exist_ok=True)

        errors = ExportErrorSet(module=self.module)
        for step in self.steps():
            errors.attempted += 1
            try:
                step.run(files_dir)
            except (ExportStepError, *ADVISORY_ERRORS) as e:
                logger.warning("Export step %s/%s failed: %s", self.module, step.name, e)
                errors.add(step.name, str(e))
            else:
                logger.debug("Export step %s/%s done", self.module, step.name)
        return errors

    def copy_sources(self, dest_dir: Path, sources: list[Source]) -> int:
        """Copy host paths into dest_dir verbatim.

        A step fails if a required source is missing, or if it has only
        optional sources and none of them exist. Available sources are
        copied before the failure is raised.

        Returns:
            Number of sources copied.

        Raises:
            ExportStepError: If the sources are incomplete as described above.
        """
        dest_dir.mkdir(parents=True, exist_ok=True)

        copied = 0
        missing: list[str] = []
        for source in sources:
            local = self._facts.resolve(source.path)
            if not local.exists() and not local.is_symlink():
                if source.required:
                    missing.append(source.path)
                else:
                    logger.debug("Optional source not found: %s", source.path)
                continue

            target = dest_dir / (source.dest_name or local.name)
            if local.is_dir():
                copy_tree(local, dest_dir if source.contents_only else target)
            else:
                shutil.copy2(local, target)
            copied += 1

        if missing:
            raise ExportStepError(f"missing {', '.join(missing)}")
        if copied == 0 and not any(source.required for source in sources):
            names = ", ".join(source.path for source in sources)
            raise ExportStepError(f"none of {names} found")
        return copied


def copy_tree(src: Path, dest: Path) -> None:
    """Copy a directory tree, preserving symlinks and metadata.

    Entries already in dest are overwritten, including symlinks left by an
    earlier export.
    """
    if dest.is_symlink():
        dest.unlink()
    _remove_stale_links(src, dest)
    shutil.copytree(src, dest, symlinks=True, dirs_exist_ok=True)


def _remove_stale_links(src: Path, dest: Path) -> None:
    """Remove dest entries that copytree cannot overwrite in place.

    That is every existing symlink (os.symlink refuses to replace one, and
    copying a file onto it would write through the link), and every entry
    whose source counterpart is a symlink.
    """
    if not dest.is_dir():
        return
    for root, dirnames, filenames in os.walk(src):
        rel = Path(root).relative_to(src)
        for name in (*dirnames, *filenames):
            source = Path(root) / name
            target = dest / rel / name
            if target.is_symlink():
                target.unlink()
            elif source.is_symlink() and target.is_dir():
                shutil.rmtree(target)
            elif source.is_symlink() and target.exists():
                target.unlink()


def copy_link(link: Path, dest: Path) -> None:
    """Copy a symlink as a symlink, replacing whatever is at dest."""
    if dest.is_symlink() or dest.exists():
        dest.unlink()
    os.symlink(os.readlink(link), dest)


class NullExporter(Exporter):
    """Exporter for modules that collect nothing from the host."""

    def __init__(self, facts: HostFactsProvider, *, module: str, minimum_uid: int = 1000) -> None:
        super().__init__(facts, minimum_uid=minimum_uid)
        self.module = module

    def steps(self) -> list[ExportStep]:
        return []
