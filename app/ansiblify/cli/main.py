"""Main CLI application entry point.

Defines the Typer application: module selection flags, generation and the
``--dry-run`` validation pass.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from ansiblify import __version__
from ansiblify.cli.display import format_module_help, print_run_summary, print_validation_report
from ansiblify.core.config import AnsiblifyConfig, ConfigError, load_config, save_config
from ansiblify.core.paths import OutputLayout, get_config_path
from ansiblify.core.pipeline import Orchestrator, PipelineError, resolve_selection
from ansiblify.core.project import ProjectError
from ansiblify.core.validation import ValidationPipeline
from ansiblify.facts.system import SystemFacts
from ansiblify.utils.formatting import err_console, print_error, print_info, print_success

USAGE_HINT = "Select modules with --<module>, MODULE arguments or --all, or use --dry-run."

app = typer.Typer(
    name="ansiblify",
    help="Generate an Ansible project from the configuration of this host.",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ansiblify version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route package log records through Rich on stderr."""
    logger = logging.getLogger("ansiblify")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def _init_config(path: Path | None) -> None:
    config_path = path or get_config_path()
    if config_path.exists():
        print_error(f"Config file already exists: {config_path}")
        raise typer.Exit(code=1)
    try:
        saved = save_config(AnsiblifyConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Wrote default configuration to {saved}")


@app.command(epilog=format_module_help())
def main(
    modules: Annotated[
        list[str] | None,
        typer.Argument(
            help="Modules to process (same names as the module flags).",
            show_default=False,
        ),
    ] = None,
    services: Annotated[
        bool, typer.Option("--services", help="System services configuration.")
    ] = False,
    docker: Annotated[
        bool, typer.Option("--docker", help="Docker containers configuration.")
    ] = False,
    system: Annotated[bool, typer.Option("--system", help="System configurations.")] = False,
    vm: Annotated[bool, typer.Option("--vm", help="Virtual machines configuration.")] = False,
    ssh: Annotated[bool, typer.Option("--ssh", help="SSH keys and configurations.")] = False,
    users: Annotated[bool, typer.Option("--users", help="User management.")] = False,
    paths: Annotated[bool, typer.Option("--paths", help="Custom paths configuration.")] = False,
    packages: Annotated[bool, typer.Option("--packages", help="Package management.")] = False,
    commands: Annotated[bool, typer.Option("--commands", help="Custom commands.")] = False,
    dotfiles: Annotated[
        bool, typer.Option("--dotfiles", help="User dotfiles (optional module).")
    ] = False,
    completions: Annotated[
        bool, typer.Option("--completions", help="Bash completions (optional module).")
    ] = False,
    select_all: Annotated[
        bool,
        typer.Option("--all", help="Process every core module and rebuild the role list."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Test the generated playbook without making changes."),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory (overrides the config file)."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to use instead of the default."),
    ] = None,
    init_config: Annotated[
        bool,
        typer.Option("--init-config", help="Write a default config file and exit."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output."),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """ansiblify - Turn a running server into an Ansible project.

    Exports host configuration per module, writes one role per module and
    registers the roles in site.yml. With --dry-run the generated project is
    checked with the Ansible tooling.
    """
    configure_logging(verbose)

    if init_config:
        _init_config(config_file)
        return

    flags = {
        "services": services,
        "docker": docker,
        "system": system,
        "vm": vm,
        "ssh": ssh,
        "users": users,
        "paths": paths,
        "packages": packages,
        "commands": commands,
        "dotfiles": dotfiles,
        "completions": completions,
    }
    requested = [key for key, selected in flags.items() if selected]
    requested.extend(modules or [])
    generate = select_all or bool(requested)

    if not generate and not dry_run:
        print_error(f"No modules selected. {USAGE_HINT}")
        raise typer.Exit(code=1)

    try:
        config = load_config(config_file)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    layout = OutputLayout(output if output is not None else config.output_path)

    if generate:
        try:
            selection = resolve_selection(requested, select_all=select_all)
            orchestrator = Orchestrator(layout, config, SystemFacts())
            report = orchestrator.run(selection)
        except (PipelineError, ProjectError) as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_run_summary(report)
    elif not layout.exists():
        print_error(f"No existing configuration found in {layout.base_dir}")
        print_info("Please generate a configuration first using --all or specific modules")
        raise typer.Exit(code=1)
    else:
        print_info(f"Testing existing configuration in {layout.base_dir}")

    if not dry_run:
        print_info("To test the playbook without making changes, run: ansiblify --dry-run")
        return

    pipeline = ValidationPipeline(layout)
    missing = pipeline.missing_tools()
    if missing:
        print_error(f"Required Ansible tools not found: {', '.join(missing)}")
        raise typer.Exit(code=1)

    print_info("Running dry-run tests...")
    validation = pipeline.validate()
    print_validation_report(validation, show_output=verbose)
    if not validation.passed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
