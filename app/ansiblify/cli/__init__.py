"""CLI package for ansiblify.

This package contains the Typer application and its display helpers.
"""

from ansiblify.cli.main import app

__all__ = ["app"]
