"""Module pipeline orchestration.

Resolves the requested module set and drives each module through
EXPORT -> SCAFFOLD -> GENERATE -> REGISTER, strictly sequentially. Export
failures are warnings; any other stage failure aborts the run with a
ModuleStageError naming the module and stage. Roles finished before the
failure stay on disk.

When every core module is selected, per-module registration is skipped and
the role list in site.yml is rebuilt from the role directories instead
(finalize-all), giving a canonical lexicographic order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ansiblify.core.fileio import cleanup_temp_files
from ansiblify.core.playbook import PlaybookError, finalize_all, register
from ansiblify.core.project import prepare_project, write_engine_config
from ansiblify.core.scaffold import ScaffoldError, ensure_unit
from ansiblify.exporters import get_exporter
from ansiblify.generator import GenerateError, render
from ansiblify.models.module import (
    MODULES,
    ModuleDescriptor,
    ModuleRun,
    RunReport,
    Stage,
    StageStatus,
    core_module_keys,
)
from ansiblify.utils.formatting import print_info, print_step, print_warning

if TYPE_CHECKING:
    from ansiblify.core.config import AnsiblifyConfig
    from ansiblify.core.paths import OutputLayout
    from ansiblify.exporters.base import Exporter
    from ansiblify.facts.base import HostFactsProvider

logger = logging.getLogger(__name__)

StageFn = Callable[[ModuleRun], StageStatus]
ExporterFactory = Callable[..., "Exporter"]

# Failures that abort the whole run when raised by a stage.
FATAL_STAGE_ERRORS: tuple[type[Exception], ...] = (
    ScaffoldError,
    GenerateError,
    PlaybookError,
    OSError,
)


class PipelineError(Exception):
    """Base exception for orchestration errors."""


class UnknownModuleError(PipelineError):
    """Raised when a selection names modules that do not exist."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names = list(names)
        super().__init__(f"Unknown module(s): {', '.join(self.names)}")


class EmptySelectionError(PipelineError):
    """Raised when there is nothing to process."""


class ModuleStageError(PipelineError):
    """Raised when a fatal stage fails for a module."""

    def __init__(self, module: str, stage: Stage, cause: Exception) -> None:
        self.module = module
        self.stage = stage
        super().__init__(f"Module {module} failed during {stage.value}: {cause}")


def resolve_selection(
    names: Iterable[str],
    *,
    select_all: bool = False,
    modules: Mapping[str, ModuleDescriptor] = MODULES,
) -> list[str]:
    """Resolve the requested module names into an ordered selection.

    ``select_all`` expands to the core modules in table order; explicitly
    named modules follow, duplicates removed.

    Args:
        names: Module names requested by the caller.
        select_all: Whether ``--all`` was given.
        modules: Module registry.

    Returns:
        Module keys in processing order.

    Raises:
        UnknownModuleError: If any name is not in the registry.
        EmptySelectionError: If nothing was selected.
    """
    requested = list(names)
    unknown = [name for name in requested if name not in modules]
    if unknown:
        raise UnknownModuleError(unknown)

    selection = core_module_keys(modules) if select_all else []
    for name in requested:
        if name not in selection:
            selection.append(name)

    if not selection:
        raise EmptySelectionError("No modules selected")
    return selection


def is_full_selection(
    selection: Iterable[str],
    modules: Mapping[str, ModuleDescriptor] = MODULES,
) -> bool:
    """Check if the selection covers every core module."""
    return set(core_module_keys(modules)) <= set(selection)


@dataclass(frozen=True, slots=True)
class ModulePipeline:
    """Ordered, named stages applied to one module.

    Attributes:
        stages: (stage, callable) pairs in execution order.
    """

    stages: tuple[tuple[Stage, StageFn], ...]

    def run(
        self,
        module_run: ModuleRun,
        on_stage: Callable[[ModuleRun, Stage], None] | None = None,
    ) -> ModuleRun:
        """Run every stage in order.

        Args:
            module_run: State of the module being processed; updated in place.
            on_stage: Called before each stage starts.

        Returns:
            The updated module run.

        Raises:
            ModuleStageError: If a stage raises one of FATAL_STAGE_ERRORS.
        """
        for stage, fn in self.stages:
            if on_stage is not None:
                on_stage(module_run, stage)
            try:
                status = fn(module_run)
            except FATAL_STAGE_ERRORS as e:
                module_run.stages[stage] = StageStatus.FAILED
                raise ModuleStageError(module_run.key, stage, e) from e
            module_run.stages[stage] = status
        return module_run


class Orchestrator:
    """Drives the selected modules through the pipeline.

    The orchestrator is the only writer of site.yml within a process and the
    only layer that decides whether a warning escalates to a run abort.
    """

    def __init__(
        self,
        layout: OutputLayout,
        config: AnsiblifyConfig,
        facts: HostFactsProvider,
        *,
        modules: Mapping[str, ModuleDescriptor] = MODULES,
        exporter_factory: ExporterFactory = get_exporter,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            layout: Output project layout.
            config: Generation settings.
            facts: Host facts provider handed to exporters.
            modules: Module registry.
            exporter_factory: Builds the exporter for a module key.
        """
        self._layout = layout
        self._config = config
        self._facts = facts
        self._modules = modules
        self._exporter_factory = exporter_factory

    @property
    def layout(self) -> OutputLayout:
        return self._layout

    def build_pipeline(self, *, defer_registration: bool = False) -> ModulePipeline:
        """Compose the per-module stages.

        Args:
            defer_registration: Skip incremental registration because the
                finalize-all pass will rebuild the role list.
        """
        register_stage = self._skip_registration if defer_registration else self._register
        return ModulePipeline(
            stages=(
                (Stage.EXPORT, self._export),
                (Stage.SCAFFOLD, self._scaffold),
                (Stage.GENERATE, self._generate),
                (Stage.REGISTER, register_stage),
            )
        )

    def run(self, selection: Sequence[str]) -> RunReport:
        """Generate the project for the selected modules.

        Args:
            selection: Module keys in processing order (see resolve_selection).

        Returns:
            RunReport describing every processed module.

        Raises:
            UnknownModuleError: If the selection names unknown modules
                (raised before anything is written).
            EmptySelectionError: If the selection is empty.
            ModuleStageError: If a scaffold, generate or register stage fails.
            PipelineError: If the finalize-all pass fails.
            ProjectError: If the project skeleton cannot be written.
        """
        unknown = [key for key in selection if key not in self._modules]
        if unknown:
            raise UnknownModuleError(unknown)
        if not selection:
            raise EmptySelectionError("No modules selected")

        full = is_full_selection(selection, self._modules)
        report = RunReport(output_dir=self._layout.base_dir)
        pipeline = self.build_pipeline(defer_registration=full)

        try:
            prepare_project(self._layout, self._config, self._facts)

            for key in selection:
                print_info(f"Processing module: {key}")
                module_run = ModuleRun(key=key, unit_dir=self._layout.unit_dir(key))
                report.runs.append(module_run)
                pipeline.run(module_run, on_stage=self._announce)

            if full:
                print_info("Registering all roles in site.yml")
                try:
                    finalize_all(self._layout.playbook_path, self._layout.roles_dir)
                except PlaybookError as e:
                    raise PipelineError(f"Failed to register all roles: {e}") from e
                report.finalized = True

            write_engine_config(self._layout)
        finally:
            cleanup_temp_files(self._layout.base_dir)

        return report

    def _announce(self, module_run: ModuleRun, stage: Stage) -> None:
        print_step(module_run.key, f"{stage.value}...")

    def _export(self, module_run: ModuleRun) -> StageStatus:
        exporter = self._exporter_factory(
            module_run.key,
            self._facts,
            minimum_uid=self._config.minimum_uid,
        )
        module_run.export = exporter.export(module_run.unit_dir)
        if module_run.export:
            failed = ", ".join(module_run.export.failed_steps)
            print_warning(f"{module_run.key}: some exports failed: {failed}")
            return StageStatus.WARNING
        return StageStatus.OK

    def _scaffold(self, module_run: ModuleRun) -> StageStatus:
        ensure_unit(self._layout.roles_dir, module_run.key)
        return StageStatus.OK

    def _generate(self, module_run: ModuleRun) -> StageStatus:
        render(module_run.unit_dir, module_run.key)
        return StageStatus.OK

    def _register(self, module_run: ModuleRun) -> StageStatus:
        module_run.registered = register(self._layout.playbook_path, module_run.key)
        return StageStatus.OK

    def _skip_registration(self, module_run: ModuleRun) -> StageStatus:
        logger.debug("Deferring registration of %s to finalize-all", module_run.key)
        return StageStatus.SKIPPED
