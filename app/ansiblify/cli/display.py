"""Shared Rich display functions for generation and validation results.

Provides the module table shown in help output, the per-module run summary
printed after generation and the step table printed after a dry run.
"""

from collections.abc import Mapping

from rich.markup import escape
from rich.table import Table

from ansiblify.models.module import MODULES, ModuleDescriptor, RunReport, Stage, StageStatus
from ansiblify.models.validation import StepStatus, ValidationReport
from ansiblify.utils.formatting import console, print_error, print_success, print_warning

_STAGE_STYLES = {
    StageStatus.PENDING: "muted",
    StageStatus.OK: "success",
    StageStatus.WARNING: "warning",
    StageStatus.SKIPPED: "muted",
    StageStatus.FAILED: "error",
}

_STEP_STYLES = {
    StepStatus.PASSED: "success",
    StepStatus.FAILED: "error",
    StepStatus.SKIPPED: "muted",
}


def format_module_help(modules: Mapping[str, ModuleDescriptor] = MODULES) -> str:
    """Render the module table for the help epilog.

    Args:
        modules: Module registry.

    Returns:
        Epilog text, one module per paragraph.
    """
    lines = ["[bold]Available modules:[/bold]"]
    for key, descriptor in modules.items():
        suffix = " [dim](optional, not part of --all)[/dim]" if descriptor.optional else ""
        lines.append(f"  [bold]--{key}[/bold]  {descriptor.description}{suffix}")
    # Rich help output joins single newlines; paragraphs become lines.
    return "\n\n".join(lines)


def create_run_table(report: RunReport) -> Table:
    """Create a Rich table with one row per processed module.

    Args:
        report: Result of a generation run.

    Returns:
        Rich Table with the stage outcomes and failed export steps.
    """
    table = Table(
        title="Generated Roles",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Module", style="module", no_wrap=True)
    table.add_column("Export", justify="center")
    table.add_column("Role", justify="center")
    table.add_column("site.yml", justify="center")
    table.add_column("Failed exports")

    for run in report.runs:
        cells = []
        for stage in (Stage.EXPORT, Stage.GENERATE, Stage.REGISTER):
            stage_status = run.stages[stage]
            style = _STAGE_STYLES[stage_status]
            cells.append(f"[{style}]{stage_status.value}[/{style}]")
        failed = ", ".join(run.export.failed_steps) if run.export else ""
        table.add_row(run.key, *cells, f"[muted]{failed}[/muted]")

    return table


def print_run_summary(report: RunReport) -> None:
    """Print the generation summary table and closing message."""
    console.print(create_run_table(report))
    if report.finalized:
        console.print("[muted]Role list in site.yml rebuilt in alphabetical order.[/muted]")

    warned = report.warnings
    if warned:
        print_warning(f"{len(warned)} module(s) completed with export warnings")
    print_success(f"Ansible playbook structure generated in {report.output_dir}/")


def create_validation_table(report: ValidationReport) -> Table:
    """Create a Rich table with one row per validation step.

    Args:
        report: Result of the validation pipeline.

    Returns:
        Rich Table with step, status and message columns.
    """
    table = Table(
        title="Validation",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Step", no_wrap=True)
    table.add_column("Status", width=8, justify="center")
    table.add_column("Message")

    for result in report.results:
        style = _STEP_STYLES[result.status]
        table.add_row(
            result.step.value,
            f"[{style}]{result.status.value.upper()}[/{style}]",
            f"[muted]{escape(result.message)}[/muted]",
        )

    return table


def print_validation_report(report: ValidationReport, *, show_output: bool = False) -> None:
    """Print the validation table and the aggregate outcome.

    Args:
        report: Result of the validation pipeline.
        show_output: Also print the captured output of failed steps.
    """
    console.print(create_validation_table(report))

    if show_output:
        for result in report.results:
            if result.failed and result.output:
                console.print(f"\n[bold_header]{result.step.value}[/bold_header]")
                console.print(result.output, markup=False, highlight=False)

    if report.passed:
        print_success("All tests passed successfully!")
    else:
        print_error("Some tests failed. Please review the output above.")
