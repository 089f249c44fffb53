"""Task fragment generation for roles."""

from ansiblify.generator.render import GenerateError, render
from ansiblify.generator.tasks import TASK_FILES

__all__ = ["TASK_FILES", "GenerateError", "render"]
