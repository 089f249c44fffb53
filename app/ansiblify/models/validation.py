"""Validation pipeline models."""

from dataclasses import dataclass, field
from enum import Enum


class ValidationStep(Enum):
    """Validation steps, in execution order.

    Attributes:
        DEPENDENCIES: Install collections listed in requirements.yml.
        STRUCTURE: site.yml and roles/ are present.
        SYNTAX: ansible-playbook --syntax-check.
        LINT: ansible-lint (advisory).
        CHECK: ansible-playbook --check --diff.
    """

    DEPENDENCIES = "dependencies"
    STRUCTURE = "structure"
    SYNTAX = "syntax"
    LINT = "lint"
    CHECK = "check"


class StepStatus(Enum):
    """Outcome of a validation step."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class StepResult:
    """Result of a single validation step.

    Attributes:
        step: Which step ran.
        status: Passed, failed or skipped.
        message: One-line summary for the report.
        output: Captured tool output, if any.
    """

    step: ValidationStep
    status: StepStatus
    message: str = ""
    output: str = ""

    @property
    def failed(self) -> bool:
        """Check if the step failed."""
        return self.status == StepStatus.FAILED


@dataclass(slots=True)
class ValidationReport:
    """Aggregate result of the validation pipeline."""

    results: list[StepResult] = field(default_factory=list)

    def add(self, result: StepResult) -> StepResult:
        self.results.append(result)
        return result

    def get(self, step: ValidationStep) -> StepResult | None:
        """Return the result for a step, or None if it was never reached."""
        for result in self.results:
            if result.step == step:
                return result
        return None

    @property
    def passed(self) -> bool:
        """True when no step failed."""
        return not any(result.failed for result in self.results)
