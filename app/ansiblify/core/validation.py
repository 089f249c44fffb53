"""Dry-run validation of a generated Ansible project.

Runs the external Ansible tooling against the output directory without
touching any generated file. DEPENDENCIES, STRUCTURE and SYNTAX are hard
prerequisites: a failure there skips every remaining step. LINT is advisory
and CHECK is recorded; both count towards the aggregate result.
"""

import logging
from collections.abc import Callable

from ansiblify.core.paths import OutputLayout
from ansiblify.models.validation import (
    StepResult,
    StepStatus,
    ValidationReport,
    ValidationStep,
)
from ansiblify.utils.shell import PLAIN_OUTPUT_ENV, CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

Runner = Callable[[list[str], str], CommandResult]

REQUIRED_TOOLS = ("ansible-playbook", "ansible-galaxy")
LINT_TOOL = "ansible-lint"

# Steps whose failure skips the rest of the pipeline.
BLOCKING_STEPS = frozenset(
    {ValidationStep.DEPENDENCIES, ValidationStep.STRUCTURE, ValidationStep.SYNTAX}
)


def _run_unbounded(args: list[str], cwd: str) -> CommandResult:
    return run_command(args, timeout=None, cwd=cwd, env=PLAIN_OUTPUT_ENV)


class ValidationPipeline:
    """Runs the validation steps against an output directory.

    Example:
        >>> pipeline = ValidationPipeline(OutputLayout(Path("server_config")))
        >>> report = pipeline.validate()
        >>> report.passed
        True
    """

    def __init__(
        self,
        layout: OutputLayout,
        *,
        runner: Runner = _run_unbounded,
        tool_exists: Callable[[str], bool] = command_exists,
    ) -> None:
        """Initialize the pipeline.

        Args:
            layout: Layout of the project to validate.
            runner: Executes a command in a working directory.
            tool_exists: Checks if an executable is installed.
        """
        self._layout = layout
        self._runner = runner
        self._tool_exists = tool_exists

    def missing_tools(self) -> list[str]:
        """Return the required Ansible executables that are not installed."""
        return [tool for tool in REQUIRED_TOOLS if not self._tool_exists(tool)]

    def validate(self) -> ValidationReport:
        """Run every step in order.

        Returns:
            ValidationReport with one result per step. Steps after a blocking
            failure are reported as skipped.
        """
        report = ValidationReport()
        steps: list[tuple[ValidationStep, Callable[[], StepResult]]] = [
            (ValidationStep.DEPENDENCIES, self._dependencies),
            (ValidationStep.STRUCTURE, self._structure),
            (ValidationStep.SYNTAX, self._syntax),
            (ValidationStep.LINT, self._lint),
            (ValidationStep.CHECK, self._check),
        ]

        aborted_by: ValidationStep | None = None
        for step, fn in steps:
            if aborted_by is not None:
                message = f"Skipped after {aborted_by.value} failure"
                report.add(StepResult(step, StepStatus.SKIPPED, message))
                continue

            result = report.add(fn())
            logger.debug("Validation step %s: %s", step.value, result.status.value)
            if result.failed and step in BLOCKING_STEPS:
                aborted_by = step

        return report

    def _run(self, step: ValidationStep, args: list[str], success: str, failure: str) -> StepResult:
        try:
            result = self._runner(args, str(self._layout.base_dir))
        except (FileNotFoundError, PermissionError) as e:
            return StepResult(step, StepStatus.FAILED, f"{failure}: {e}")

        if result.success:
            return StepResult(step, StepStatus.PASSED, success, result.output)
        logger.info("%s exited with %d", result.command or args[0], result.returncode)
        return StepResult(step, StepStatus.FAILED, failure, result.output)

    def _dependencies(self) -> StepResult:
        return self._run(
            ValidationStep.DEPENDENCIES,
            [
                "ansible-galaxy",
                "collection",
                "install",
                "-r",
                self._layout.requirements_path.name,
                "--force",
            ],
            "Collections installed",
            "Failed to install collections",
        )

    def _structure(self) -> StepResult:
        playbook = self._layout.playbook_path
        roles_dir = self._layout.roles_dir

        problems: list[str] = []
        if not playbook.is_file():
            problems.append(f"{playbook.name} not found")
        else:
            try:
                playbook.read_text(encoding="utf-8")
            except OSError as e:
                problems.append(f"{playbook.name} not readable: {e}")
        if not roles_dir.is_dir():
            problems.append(f"{roles_dir.name}/ directory not found")

        if problems:
            return StepResult(ValidationStep.STRUCTURE, StepStatus.FAILED, "; ".join(problems))
        return StepResult(ValidationStep.STRUCTURE, StepStatus.PASSED, "Project structure is valid")

    def _playbook_args(self) -> list[str]:
        inventory = self._layout.inventory_path.relative_to(self._layout.base_dir)
        return ["ansible-playbook", "-i", str(inventory), self._layout.playbook_path.name]

    def _syntax(self) -> StepResult:
        return self._run(
            ValidationStep.SYNTAX,
            [*self._playbook_args(), "--syntax-check"],
            "Syntax check passed",
            "Syntax check failed",
        )

    def _lint(self) -> StepResult:
        if not self._tool_exists(LINT_TOOL):
            return StepResult(ValidationStep.LINT, StepStatus.SKIPPED, f"{LINT_TOOL} not installed")
        return self._run(
            ValidationStep.LINT,
            [LINT_TOOL, self._layout.playbook_path.name],
            "Lint passed",
            "Lint reported issues",
        )

    def _check(self) -> StepResult:
        return self._run(
            ValidationStep.CHECK,
            [*self._playbook_args(), "--check", "--diff"],
            "Check mode passed",
            "Check mode reported failures",
        )
