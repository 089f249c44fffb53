"""Export result models.

An export is made of independent named sub-steps; failures are collected
per step and never abort the module.
"""

from dataclasses import dataclass, field
from enum import Enum


class ExportStatus(Enum):
    """Overall status of a module export.

    Attributes:
        OK: Every sub-export succeeded (or the module has none).
        PARTIAL: Some sub-exports failed.
        FAILED: Every attempted sub-export failed.

    PARTIAL and FAILED are both advisory: the module is still scaffolded,
    generated and registered.
    """

    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(slots=True)
class ExportErrorSet:
    """Named sub-export failures collected for one module.

    Attributes:
        module: Module key the export belongs to.
        failures: Step name -> failure reason, in the order steps ran.
        attempted: Number of sub-export steps that were run.
    """

    module: str
    failures: dict[str, str] = field(default_factory=dict)
    attempted: int = 0

    def add(self, step: str, reason: str) -> None:
        """Record a failed sub-export step."""
        self.failures[step] = reason

    @property
    def failed_steps(self) -> list[str]:
        """Names of the failed steps."""
        return list(self.failures)

    @property
    def status(self) -> ExportStatus:
        """Derive the overall export status."""
        if not self.failures:
            return ExportStatus.OK
        if len(self.failures) >= self.attempted:
            return ExportStatus.FAILED
        return ExportStatus.PARTIAL

    def __bool__(self) -> bool:
        return bool(self.failures)

    def __len__(self) -> int:
        return len(self.failures)
