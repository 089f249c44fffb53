"""Data models for ansiblify.

This module exports the core data structures used throughout the application.
"""

from ansiblify.models.export import ExportErrorSet, ExportStatus
from ansiblify.models.module import (
    MODULES,
    ModuleDescriptor,
    ModuleRun,
    RunReport,
    Stage,
    StageStatus,
    core_module_keys,
)
from ansiblify.models.validation import (
    StepResult,
    StepStatus,
    ValidationReport,
    ValidationStep,
)

__all__ = [
    "MODULES",
    "ExportErrorSet",
    "ExportStatus",
    "ModuleDescriptor",
    "ModuleRun",
    "RunReport",
    "Stage",
    "StageStatus",
    "StepResult",
    "StepStatus",
    "ValidationReport",
    "ValidationStep",
    "core_module_keys",
]
