"""Software exporters: package lists, custom commands, Docker, completions."""

import logging
import os
import shutil
from pathlib import Path

from ansiblify.core.fileio import atomic_write_text
from ansiblify.exporters.base import Exporter, ExportStep, ExportStepError, Source

logger = logging.getLogger(__name__)

# npm list draws a tree; package lines carry a box-drawing connector.
_NPM_TREE_MARKER = "──"

CUSTOM_COMMANDS_DIR = "/usr/local/bin"
COMPOSE_FILE = "/opt/docker/docker-compose.yml"


def parse_npm_list(output: str) -> list[str]:
    """Extract ``name@version`` entries from ``npm list -g --depth=0`` output.

    Args:
        output: Raw npm list output.

    Returns:
        Package entries in listing order.
    """
    packages: list[str] = []
    for line in output.splitlines():
        if _NPM_TREE_MARKER not in line:
            continue
        fields = line.split()
        if len(fields) >= 2:
            packages.append(fields[1])
    return packages


class PackagesExporter(Exporter):
    """Exports installed package lists (APT, pip, npm), one step per manager."""

    module = "packages"

    def steps(self) -> list[ExportStep]:
        return [
            ExportStep("apt_packages", self._export_apt),
            ExportStep("pip_packages", self._export_pip),
            ExportStep("npm_packages", self._export_npm),
        ]

    def _export_apt(self, files_dir: Path) -> None:
        output = self._facts.run(["dpkg-query", "-W", "-f", "${binary:Package}\\n"])
        atomic_write_text(files_dir / "apt_packages.txt", output)

    def _export_pip(self, files_dir: Path) -> None:
        output = self._facts.run(["pip", "freeze"])
        atomic_write_text(files_dir / "pip_packages.txt", output)

    def _export_npm(self, files_dir: Path) -> None:
        # npm list exits 1 on extraneous or invalid peers but still prints the tree.
        output = self._facts.run(["npm", "list", "-g", "--depth=0"], check=False)
        packages = parse_npm_list(output)
        atomic_write_text(
            files_dir / "npm_packages.txt",
            "".join(f"{name}\n" for name in packages),
        )


class CommandsExporter(Exporter):
    """Exports executable scripts from /usr/local/bin."""

    module = "commands"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("custom_scripts", self._export_scripts)]

    def _export_scripts(self, files_dir: Path) -> None:
        """Copy executable regular files (not recursing into subdirectories).

        Raises:
            ExportStepError: If the commands directory does not exist.
        """
        src_dir = self._facts.resolve(CUSTOM_COMMANDS_DIR)
        if not src_dir.is_dir():
            raise ExportStepError(f"missing {CUSTOM_COMMANDS_DIR}")

        count = 0
        for entry in sorted(src_dir.iterdir()):
            if entry.is_symlink() or not entry.is_file():
                continue
            if not os.access(entry, os.X_OK):
                continue
            shutil.copy2(entry, files_dir / entry.name)
            count += 1
        logger.debug("Exported %d custom command(s)", count)


class DockerExporter(Exporter):
    """Exports the Docker Compose definition."""

    module = "docker"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("compose_file", self._export_compose)]

    def _export_compose(self, files_dir: Path) -> None:
        self.copy_sources(files_dir, [Source(COMPOSE_FILE)])


class CompletionsExporter(Exporter):
    """Exports system-wide bash completion scripts."""

    module = "completions"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("bash_completions", self._export_completions)]

    def _export_completions(self, files_dir: Path) -> None:
        self.copy_sources(
            files_dir,
            [
                Source(
                    "/etc/bash_completion.d",
                    required=False,
                    dest_name="etc_bash_completion.d",
                ),
                Source(
                    "/usr/share/bash-completion/completions",
                    required=False,
                    dest_name="usr_share_bash_completion_completions",
                ),
            ],
        )
