"""System and service exporters.

The system module is a bundle of small /etc exports (hosts, fstab, cron,
SNMP, rsync, MOTD, NTP); each one is its own step so a host without SNMP
still gets its cron tables exported.
"""

import logging
import os
import shutil
from pathlib import Path

from ansiblify.exporters.base import Exporter, ExportStep, ExportStepError, Source, copy_link

logger = logging.getLogger(__name__)

CRON_DIRS: tuple[str, ...] = (
    "/etc/cron.d",
    "/etc/cron.daily",
    "/etc/cron.hourly",
    "/etc/cron.monthly",
    "/etc/cron.weekly",
)

SYSTEMD_DIR = "/etc/systemd/system"
WANTS_DIR = "multi-user.target.wants"


class SystemExporter(Exporter):
    """Exports core /etc configuration files."""

    module = "system"

    def steps(self) -> list[ExportStep]:
        return [
            ExportStep("system_files", self._export_system_files),
            ExportStep("cron_configs", self._export_cron),
            ExportStep("snmp_configs", self._export_snmp),
            ExportStep("rsync_configs", self._export_rsync),
            ExportStep("motd_configs", self._export_motd),
            ExportStep("ntp_configs", self._export_ntp),
        ]

    def _export_system_files(self, files_dir: Path) -> None:
        self.copy_sources(files_dir, [Source("/etc/hosts"), Source("/etc/fstab")])

    def _export_cron(self, files_dir: Path) -> None:
        self.copy_sources(
            files_dir / "cron",
            [Source("/etc/crontab"), *(Source(d, required=False) for d in CRON_DIRS)],
        )

    def _export_snmp(self, files_dir: Path) -> None:
        self.copy_sources(files_dir / "snmp", [Source("/etc/snmp", contents_only=True)])

    def _export_rsync(self, files_dir: Path) -> None:
        self.copy_sources(
            files_dir / "rsync",
            [Source("/etc/rsyncd.conf"), Source("/etc/rsyncd.secrets", required=False)],
        )

    def _export_motd(self, files_dir: Path) -> None:
        self.copy_sources(
            files_dir / "motd",
            [
                Source("/etc/motd", required=False),
                Source("/etc/update-motd.d", required=False),
            ],
        )

    def _export_ntp(self, files_dir: Path) -> None:
        self.copy_sources(
            files_dir / "ntp",
            [Source("/etc/ntp.conf", required=False), Source("/etc/ntp", required=False)],
        )


class ServicesExporter(Exporter):
    """Exports custom systemd units and their multi-user enablement links."""

    module = "services"

    def steps(self) -> list[ExportStep]:
        return [ExportStep("systemd_units", self._export_units)]

    def _export_units(self, files_dir: Path) -> None:
        """Copy unit files and the wants symlinks (as links) plus their targets.

        Raises:
            ExportStepError: If the systemd unit directory does not exist.
        """
        unit_dir = self._facts.resolve(SYSTEMD_DIR)
        if not unit_dir.is_dir():
            raise ExportStepError(f"missing {SYSTEMD_DIR}")

        dest_dir = files_dir / "systemd"
        dest_dir.mkdir(parents=True, exist_ok=True)

        for unit in sorted(unit_dir.glob("*.service")):
            if unit.is_file() and not unit.is_symlink():
                shutil.copy2(unit, dest_dir / unit.name)

        wants_dir = unit_dir / WANTS_DIR
        if not wants_dir.is_dir():
            return

        dest_wants = dest_dir / WANTS_DIR
        dest_wants.mkdir(exist_ok=True)
        for link in sorted(wants_dir.glob("*.service")):
            if not link.is_symlink():
                shutil.copy2(link, dest_wants / link.name)
                continue
            copy_link(link, dest_wants / link.name)
            target = self._resolve_link_target(link)
            if not target.is_file():
                logger.debug("Unit link %s points to missing %s", link, target)
                continue
            if not (dest_dir / target.name).exists():
                shutil.copy2(target, dest_dir / target.name)

    def _resolve_link_target(self, link: Path) -> Path:
        """Resolve a unit symlink, mapping absolute targets onto the facts root."""
        target = os.readlink(link)
        if os.path.isabs(target):
            return self._facts.resolve(target)
        return (link.parent / target).resolve()
