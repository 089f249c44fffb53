"""Unit tests for cli/display.py.

Tests for the help epilog, the generation summary and the validation report.
"""

import io
from pathlib import Path

import pytest
from ansiblify.cli.display import (
    create_run_table,
    create_validation_table,
    format_module_help,
    print_run_summary,
    print_validation_report,
)
from ansiblify.models.export import ExportErrorSet
from ansiblify.models.module import ModuleRun, RunReport, Stage, StageStatus
from ansiblify.models.validation import StepResult, StepStatus, ValidationReport, ValidationStep
from ansiblify.utils.formatting import THEME
from rich.console import Console


def _capture_console_output(func: object, *args: object, **kwargs: object) -> str:
    """Capture Rich console output by temporarily replacing the consoles.

    Patches the module-level consoles used by display functions and captures
    stdout and stderr output to one StringIO buffer.
    """
    import ansiblify.cli.display as display_mod
    import ansiblify.utils.formatting as fmt_mod

    buf = io.StringIO()
    test_console = Console(theme=THEME, file=buf, color_system=None, width=200)

    originals = (display_mod.console, fmt_mod.console, fmt_mod.err_console)
    display_mod.console = test_console
    fmt_mod.console = test_console
    fmt_mod.err_console = test_console
    try:
        func(*args, **kwargs)  # type: ignore[operator]
    finally:
        display_mod.console, fmt_mod.console, fmt_mod.err_console = originals

    return buf.getvalue()


def _render(renderable: object) -> str:
    buf = io.StringIO()
    Console(theme=THEME, file=buf, color_system=None, width=200).print(renderable)
    return buf.getvalue()


@pytest.fixture
def run_report(tmp_path: Path) -> RunReport:
    """Report with one clean module and one with export warnings."""
    users = ModuleRun(key="users", unit_dir=tmp_path / "users")
    users.stages = {stage: StageStatus.OK for stage in Stage}

    system = ModuleRun(key="system", unit_dir=tmp_path / "system")
    system.stages = {stage: StageStatus.OK for stage in Stage}
    system.stages[Stage.EXPORT] = StageStatus.WARNING
    system.export = ExportErrorSet(module="system", attempted=3)
    system.export.add("cron_configs", "missing /etc/crontab")

    return RunReport(output_dir=tmp_path, runs=[users, system])


@pytest.fixture
def failed_validation() -> ValidationReport:
    """Report where syntax failed and later steps were skipped."""
    report = ValidationReport()
    report.add(StepResult(ValidationStep.DEPENDENCIES, StepStatus.PASSED, "Collections installed"))
    report.add(StepResult(ValidationStep.STRUCTURE, StepStatus.PASSED, "ok"))
    report.add(
        StepResult(
            ValidationStep.SYNTAX,
            StepStatus.FAILED,
            "Syntax check failed",
            "ERROR! [roles/users] is not a valid role",
        )
    )
    report.add(StepResult(ValidationStep.LINT, StepStatus.SKIPPED, "Skipped after syntax failure"))
    report.add(StepResult(ValidationStep.CHECK, StepStatus.SKIPPED, "Skipped after syntax failure"))
    return report


class TestFormatModuleHelp:
    """Tests for format_module_help."""

    def test_lists_every_module(self) -> None:
        """Every module flag appears with its description."""
        text = format_module_help()

        assert "--users" in text
        assert "User management" in text
        assert "--completions" in text

    def test_marks_optional_modules(self) -> None:
        """Only optional modules carry the --all note."""
        paragraphs = format_module_help().split("\n\n")
        optional = [p for p in paragraphs if "not part of --all" in p]

        assert len(optional) == 2
        assert any("--dotfiles" in p for p in optional)


class TestCreateRunTable:
    """Tests for create_run_table."""

    def test_columns(self, run_report: RunReport) -> None:
        """Table has one column per reported stage."""
        table = create_run_table(run_report)
        column_names = [col.header for col in table.columns]

        assert column_names == ["Module", "Export", "Role", "site.yml", "Failed exports"]
        assert table.row_count == 2

    def test_shows_failed_steps(self, run_report: RunReport) -> None:
        """Failed export step names are listed in the row."""
        output = _render(create_run_table(run_report))

        assert "cron_configs" in output
        assert "warning" in output


class TestPrintRunSummary:
    """Tests for print_run_summary."""

    def test_reports_warnings_and_output_dir(self, run_report: RunReport) -> None:
        """Summary counts warned modules and names the output directory."""
        output = _capture_console_output(print_run_summary, run_report)

        assert "1 module(s) completed with export warnings" in output
        assert "Ansible playbook structure generated" in output

    def test_finalized_note(self, run_report: RunReport) -> None:
        """A finalized run mentions the rebuilt role list."""
        run_report.finalized = True

        output = _capture_console_output(print_run_summary, run_report)

        assert "rebuilt in alphabetical order" in output


class TestValidationReport:
    """Tests for the validation table and report."""

    def test_table_rows(self, failed_validation: ValidationReport) -> None:
        """One row per step with upper-case status."""
        table = create_validation_table(failed_validation)
        output = _render(table)

        assert table.row_count == 5
        assert "FAILED" in output
        assert "SKIPPED" in output

    def test_failed_summary(self, failed_validation: ValidationReport) -> None:
        """A failed report ends with the failure message."""
        output = _capture_console_output(print_validation_report, failed_validation)

        assert "Some tests failed" in output
        assert "is not a valid role" not in output

    def test_show_output(self, failed_validation: ValidationReport) -> None:
        """show_output prints the captured output of failed steps."""
        output = _capture_console_output(
            print_validation_report, failed_validation, show_output=True
        )

        assert "[roles/users] is not a valid role" in output

    def test_passed_summary(self) -> None:
        """A passing report prints the success message."""
        report = ValidationReport()
        report.add(StepResult(ValidationStep.SYNTAX, StepStatus.PASSED, "Syntax check passed"))

        output = _capture_console_output(print_validation_report, report)

        assert "All tests passed successfully!" in output
