"""Module registry and per-run module state.

A module is a named configuration domain (users, ssh, packages, ...) that
is exported from the host and compiled into one Ansible role.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from ansiblify.models.export import ExportErrorSet


@dataclass(frozen=True, slots=True)
class ModuleDescriptor:
    """Static description of a configuration module.

    Attributes:
        key: Unique, stable identifier. Also the role directory name.
        description: Human-readable description shown in help output.
        optional: Optional modules are only processed when named explicitly
            and are not part of ``--all``.
    """

    key: str
    description: str
    optional: bool = False


def _build_registry(*descriptors: ModuleDescriptor) -> Mapping[str, ModuleDescriptor]:
    registry = {d.key: d for d in descriptors}
    if len(registry) != len(descriptors):
        msg = "Module keys must be unique"
        raise ValueError(msg)
    return MappingProxyType(registry)


MODULES: Mapping[str, ModuleDescriptor] = _build_registry(
    ModuleDescriptor("services", "System services configuration"),
    ModuleDescriptor("docker", "Docker containers configuration"),
    ModuleDescriptor("system", "System configurations (hosts, fstab, cron, snmp, ...)"),
    ModuleDescriptor("vm", "Virtual machines configuration"),
    ModuleDescriptor("ssh", "SSH keys and configurations"),
    ModuleDescriptor("users", "User management"),
    ModuleDescriptor("paths", "Custom paths configuration"),
    ModuleDescriptor("packages", "Package management"),
    ModuleDescriptor("commands", "Custom commands"),
    ModuleDescriptor("dotfiles", "User dotfiles (excluding .ssh)", optional=True),
    ModuleDescriptor("completions", "System-wide bash completions", optional=True),
)


def core_module_keys(modules: Mapping[str, ModuleDescriptor] = MODULES) -> list[str]:
    """Return the keys selected by ``--all``, in table order."""
    return [key for key, descriptor in modules.items() if not descriptor.optional]


class Stage(Enum):
    """Named stages of the per-module pipeline, in execution order."""

    EXPORT = "export"
    SCAFFOLD = "scaffold"
    GENERATE = "generate"
    REGISTER = "register"


class StageStatus(Enum):
    """Outcome of one pipeline stage for one module."""

    PENDING = "pending"
    OK = "ok"
    WARNING = "warning"
    SKIPPED = "skipped"
    FAILED = "failed"


_DONE_STATUSES = frozenset({StageStatus.OK, StageStatus.WARNING, StageStatus.SKIPPED})


@dataclass(slots=True)
class ModuleRun:
    """Ephemeral state of one module within one invocation.

    Attributes:
        key: Module key being processed.
        unit_dir: Role directory owned by this module.
        export: Sub-export failures collected during the export stage.
        stages: Status of each stage, updated as the pipeline advances.
        registered: True if the register stage changed site.yml.
    """

    key: str
    unit_dir: Path
    export: ExportErrorSet | None = None
    stages: dict[Stage, StageStatus] = field(
        default_factory=lambda: {stage: StageStatus.PENDING for stage in Stage}
    )
    registered: bool = False

    @property
    def has_warnings(self) -> bool:
        """Check if any stage finished with warnings."""
        return StageStatus.WARNING in self.stages.values()

    @property
    def completed(self) -> bool:
        """Check if every stage finished without failing."""
        return all(s in _DONE_STATUSES for s in self.stages.values())


@dataclass(slots=True)
class RunReport:
    """Aggregate result of one generation run.

    Attributes:
        output_dir: Root of the generated Ansible project.
        runs: Module runs in processing order.
        finalized: True if the role list was rewritten by the finalize-all pass.
    """

    output_dir: Path
    runs: list[ModuleRun] = field(default_factory=list)
    finalized: bool = False

    @property
    def warnings(self) -> list[ModuleRun]:
        """Module runs that completed with warnings."""
        return [run for run in self.runs if run.has_warnings]
