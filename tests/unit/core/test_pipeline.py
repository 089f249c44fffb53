"""Unit tests for module selection and pipeline orchestration."""

from pathlib import Path
from unittest.mock import patch

import pytest
from ansiblify.core.config import AnsiblifyConfig
from ansiblify.core.fileio import TEMP_PREFIX, TEMP_SUFFIX
from ansiblify.core.paths import OutputLayout
from ansiblify.core.pipeline import (
    EmptySelectionError,
    ModulePipeline,
    ModuleStageError,
    Orchestrator,
    UnknownModuleError,
    is_full_selection,
    resolve_selection,
)
from ansiblify.core.playbook import registered_roles
from ansiblify.core.scaffold import ScaffoldError, ensure_unit
from ansiblify.exporters import get_exporter
from ansiblify.models.export import ExportStatus
from ansiblify.models.module import ModuleRun, Stage, StageStatus, core_module_keys
from conftest import FakeFacts, write_file


def _snapshot(directory: Path) -> dict[Path, bytes]:
    return {
        path.relative_to(directory): path.read_bytes()
        for path in sorted(directory.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def orchestrator(
    layout: OutputLayout, config: AnsiblifyConfig, fake_facts: FakeFacts
) -> Orchestrator:
    """Orchestrator over an empty fake host."""
    return Orchestrator(layout, config, fake_facts)


class TestResolveSelection:
    """Tests for resolve_selection function."""

    def test_preserves_order_and_dedupes(self) -> None:
        """Named modules keep their order; repeats are dropped."""
        assert resolve_selection(["users", "ssh", "users"]) == ["users", "ssh"]

    def test_all_expands_to_core_modules(self) -> None:
        """--all selects the core modules in table order."""
        assert resolve_selection([], select_all=True) == core_module_keys()
        assert "dotfiles" not in resolve_selection([], select_all=True)

    def test_all_with_optional_module(self) -> None:
        """Optional modules named alongside --all are appended."""
        selection = resolve_selection(["completions", "users"], select_all=True)

        assert selection == [*core_module_keys(), "completions"]

    def test_unknown_module(self) -> None:
        """Unknown names are reported together."""
        with pytest.raises(UnknownModuleError) as exc_info:
            resolve_selection(["users", "bogus", "nope"])

        assert exc_info.value.names == ["bogus", "nope"]
        assert "bogus, nope" in str(exc_info.value)

    def test_empty_selection(self) -> None:
        """Selecting nothing is an error."""
        with pytest.raises(EmptySelectionError):
            resolve_selection([])


class TestIsFullSelection:
    """Tests for is_full_selection function."""

    def test_core_modules_are_full(self) -> None:
        """All core modules form a full selection, extras or not."""
        assert is_full_selection(core_module_keys())
        assert is_full_selection([*core_module_keys(), "dotfiles"])

    def test_subset_is_not_full(self) -> None:
        """A strict subset is not a full selection."""
        assert not is_full_selection(["users", "ssh"])


class TestModulePipeline:
    """Tests for ModulePipeline."""

    def test_runs_stages_in_order(self, tmp_path: Path) -> None:
        """Stages run in declared order and record their status."""
        order: list[str] = []

        def stage(name: str, status: StageStatus):
            def _run(module_run: ModuleRun) -> StageStatus:
                order.append(name)
                return status

            return _run

        pipeline = ModulePipeline(
            stages=(
                (Stage.EXPORT, stage("export", StageStatus.WARNING)),
                (Stage.SCAFFOLD, stage("scaffold", StageStatus.OK)),
                (Stage.GENERATE, stage("generate", StageStatus.OK)),
                (Stage.REGISTER, stage("register", StageStatus.SKIPPED)),
            )
        )
        announced: list[Stage] = []

        module_run = pipeline.run(
            ModuleRun(key="users", unit_dir=tmp_path),
            on_stage=lambda _run, s: announced.append(s),
        )

        assert order == ["export", "scaffold", "generate", "register"]
        assert announced == list(Stage)
        assert module_run.stages[Stage.EXPORT] == StageStatus.WARNING
        assert module_run.stages[Stage.REGISTER] == StageStatus.SKIPPED
        assert module_run.completed
        assert module_run.has_warnings

    def test_fatal_stage_error(self, tmp_path: Path) -> None:
        """A failing stage is marked failed and later stages never run."""
        ran: list[Stage] = []

        def failing(module_run: ModuleRun) -> StageStatus:
            raise ScaffoldError("disk full")

        def later(module_run: ModuleRun) -> StageStatus:
            ran.append(Stage.GENERATE)
            return StageStatus.OK

        pipeline = ModulePipeline(stages=((Stage.SCAFFOLD, failing), (Stage.GENERATE, later)))
        module_run = ModuleRun(key="ssh", unit_dir=tmp_path)

        with pytest.raises(ModuleStageError) as exc_info:
            pipeline.run(module_run)

        assert exc_info.value.module == "ssh"
        assert exc_info.value.stage == Stage.SCAFFOLD
        assert "disk full" in str(exc_info.value)
        assert module_run.stages[Stage.SCAFFOLD] == StageStatus.FAILED
        assert module_run.stages[Stage.GENERATE] == StageStatus.PENDING
        assert ran == []


class TestOrchestrator:
    """Tests for Orchestrator.run."""

    def test_generates_and_registers(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """Selected modules are scaffolded, generated and registered in order."""
        report = orchestrator.run(["users", "ssh"])

        assert [run.key for run in report.runs] == ["users", "ssh"]
        assert all(run.completed for run in report.runs)
        assert not report.finalized
        assert registered_roles(layout.playbook_path) == ["users", "ssh"]
        tasks = (layout.unit_dir("users") / "tasks" / "main.yml").read_text()
        assert "ansible.builtin.user:" in tasks
        assert (layout.unit_dir("ssh") / "tasks" / "user_ssh.yml").is_file()
        assert layout.engine_config_path.is_file()

    def test_unknown_module_has_no_side_effects(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """Validation happens before any directory is created."""
        with pytest.raises(UnknownModuleError):
            orchestrator.run(["users", "bogus"])

        assert not layout.base_dir.exists()

    def test_empty_selection(self, orchestrator: Orchestrator, layout: OutputLayout) -> None:
        """An empty selection is rejected without side effects."""
        with pytest.raises(EmptySelectionError):
            orchestrator.run([])

        assert not layout.base_dir.exists()

    def test_incremental_runs_keep_order_and_units(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """A later run appends its roles and leaves earlier roles untouched."""
        orchestrator.run(["users", "ssh"])
        users_before = _snapshot(layout.unit_dir("users"))
        ssh_before = _snapshot(layout.unit_dir("ssh"))

        orchestrator.run(["packages"])

        assert registered_roles(layout.playbook_path) == ["users", "ssh", "packages"]
        assert _snapshot(layout.unit_dir("users")) == users_before
        assert _snapshot(layout.unit_dir("ssh")) == ssh_before

    def test_export_failure_still_registers(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """A missing /etc/crontab only produces a warning."""
        report = orchestrator.run(["system"])

        run = report.runs[0]
        assert run.stages[Stage.EXPORT] == StageStatus.WARNING
        assert "cron_configs" in run.export.failed_steps
        assert run.export.status == ExportStatus.FAILED
        assert run.completed
        assert report.warnings == [run]
        assert registered_roles(layout.playbook_path) == ["system"]

    def test_partial_export(
        self, host_root: Path, layout: OutputLayout, config: AnsiblifyConfig
    ) -> None:
        """Available sources are exported next to failed steps."""
        write_file(host_root / "etc" / "hosts", "127.0.0.1 localhost\n")
        write_file(host_root / "etc" / "fstab", "proc /proc proc defaults 0 0\n")
        orchestrator = Orchestrator(layout, config, FakeFacts(host_root))

        report = orchestrator.run(["system"])

        files_dir = layout.unit_dir("system") / "files"
        assert (files_dir / "hosts").read_text() == "127.0.0.1 localhost\n"
        assert report.runs[0].export.status == ExportStatus.PARTIAL
        assert "system_files" not in report.runs[0].export.failed_steps

    def test_full_selection_finalizes_sorted(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """--all rebuilds the role list in lexicographic order."""
        report = orchestrator.run(core_module_keys())

        assert report.finalized
        assert registered_roles(layout.playbook_path) == sorted(core_module_keys())
        assert all(run.stages[Stage.REGISTER] == StageStatus.SKIPPED for run in report.runs)

    def test_full_selection_includes_earlier_roles(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """Roles from earlier runs are part of the rebuilt list."""
        orchestrator.run(["dotfiles"])

        orchestrator.run(core_module_keys())

        assert registered_roles(layout.playbook_path) == sorted([*core_module_keys(), "dotfiles"])

    def test_rerun_is_byte_identical(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """Running the same selection twice changes nothing on disk."""
        orchestrator.run(["users", "ssh", "system", "vm"])
        before = _snapshot(layout.base_dir)

        orchestrator.run(["users", "ssh", "system", "vm"])

        assert _snapshot(layout.base_dir) == before

    def test_scaffold_failure_aborts_run(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """A scaffold failure stops the run; finished roles stay registered."""
        def flaky(roles_dir: Path, key: str) -> Path:
            if key == "ssh":
                raise ScaffoldError("Permission denied")
            return ensure_unit(roles_dir, key)

        with (
            patch("ansiblify.core.pipeline.ensure_unit", side_effect=flaky),
            pytest.raises(ModuleStageError) as exc_info,
        ):
            orchestrator.run(["users", "ssh", "packages"])

        assert exc_info.value.module == "ssh"
        assert exc_info.value.stage == Stage.SCAFFOLD
        assert registered_roles(layout.playbook_path) == ["users"]
        assert not layout.unit_dir("packages").exists()

    def test_interrupt_cleans_temp_files(
        self, orchestrator: Orchestrator, layout: OutputLayout
    ) -> None:
        """Stray temporary files are removed even when the run is interrupted."""
        stray = write_file(layout.roles_dir / f"{TEMP_PREFIX}x{TEMP_SUFFIX}", "partial")

        with (
            patch("ansiblify.core.pipeline.render", side_effect=KeyboardInterrupt),
            pytest.raises(KeyboardInterrupt),
        ):
            orchestrator.run(["users"])

        assert not stray.exists()

    def test_exporter_factory_receives_minimum_uid(
        self, layout: OutputLayout, fake_facts: FakeFacts
    ) -> None:
        """The configured minimum UID reaches the exporters."""
        seen: list[tuple[str, int]] = []

        def factory(key: str, facts: FakeFacts, *, minimum_uid: int):
            seen.append((key, minimum_uid))
            return get_exporter(key, facts, minimum_uid=minimum_uid)

        orchestrator = Orchestrator(
            layout,
            AnsiblifyConfig(minimum_uid=500),
            fake_facts,
            exporter_factory=factory,
        )

        orchestrator.run(["vm", "users"])

        assert seen == [("vm", 500), ("users", 500)]
