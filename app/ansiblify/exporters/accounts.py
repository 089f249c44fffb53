"""User account exporters: passwd/group, SSH material and dotfiles."""

import logging
import shutil
from pathlib import Path

from ansiblify.exporters.base import Exporter, ExportStep, Source, copy_link, copy_tree

logger = logging.getLogger(__name__)

# Never exported as dotfiles; SSH material belongs to the ssh module.
DOTFILE_EXCLUDES: frozenset[str] = frozenset({".ssh"})


class UsersExporter(Exporter):
    """Exports the account databases."""

    module = "users"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("account_files", self._export_accounts)]

    def _export_accounts(self, files_dir: Path) -> None:
        self.copy_sources(files_dir, [Source("/etc/passwd"), Source("/etc/group")])


class SshExporter(Exporter):
    """Exports each real user's ~/.ssh directory into ``files/<user>/``."""

    module = "ssh"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("ssh_files", self._export_ssh)]

    def _export_ssh(self, files_dir: Path) -> None:
        exported = 0
        for user in self._facts.real_users(self._minimum_uid):
            ssh_dir = self._facts.resolve(user.home) / ".ssh"
            if not ssh_dir.is_dir():
                continue
            copy_tree(ssh_dir, files_dir / user.name)
            exported += 1
        logger.debug("Exported SSH material for %d user(s)", exported)


class DotfilesExporter(Exporter):
    """Exports top-level dotfiles of each real user into ``files/<user>/``."""

    module = "dotfiles"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("dotfiles", self._export_dotfiles)]

    def _export_dotfiles(self, files_dir: Path) -> None:
        for user in self._facts.real_users(self._minimum_uid):
            home = self._facts.resolve(user.home)
            if not home.is_dir():
                continue

            dest = files_dir / user.name
            dest.mkdir(parents=True, exist_ok=True)
            for entry in sorted(home.iterdir()):
                if not entry.name.startswith(".") or entry.name in DOTFILE_EXCLUDES:
                    continue
                if entry.is_symlink():
                    copy_link(entry, dest / entry.name)
                elif entry.is_dir():
                    copy_tree(entry, dest / entry.name)
                else:
                    shutil.copy2(entry, dest / entry.name)
