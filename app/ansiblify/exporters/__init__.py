"""Module exporters.

This module exports the exporter classes and the registry mapping module
keys to them. Modules without an entry (vm, paths) collect nothing from
the host.
"""

from collections.abc import Mapping
from types import MappingProxyType

from ansiblify.exporters.accounts import DotfilesExporter, SshExporter, UsersExporter
from ansiblify.exporters.base import (
    Exporter,
    ExportStep,
    ExportStepError,
    NullExporter,
    Source,
)
from ansiblify.exporters.software import (
    CommandsExporter,
    CompletionsExporter,
    DockerExporter,
    PackagesExporter,
)
from ansiblify.exporters.system import ServicesExporter, SystemExporter
from ansiblify.facts.base import HostFactsProvider

EXPORTERS: Mapping[str, type[Exporter]] = MappingProxyType(
    {
        exporter.module: exporter
        for exporter in (
            ServicesExporter,
            DockerExporter,
            SystemExporter,
            SshExporter,
            UsersExporter,
            PackagesExporter,
            CommandsExporter,
            DotfilesExporter,
            CompletionsExporter,
        )
    }
)


def get_exporter(key: str, facts: HostFactsProvider, *, minimum_uid: int = 1000) -> Exporter:
    """Get the exporter for a module key.

    Args:
        key: Module key.
        facts: Host facts provider passed to the exporter.
        minimum_uid: Lowest UID treated as a real user.

    Returns:
        The module's exporter, or a NullExporter for modules with no exports.
    """
    exporter_cls = EXPORTERS.get(key)
    if exporter_cls is None:
        return NullExporter(facts, module=key, minimum_uid=minimum_uid)
    return exporter_cls(facts, minimum_uid=minimum_uid)


__all__ = [
    "EXPORTERS",
    "CommandsExporter",
    "CompletionsExporter",
    "DockerExporter",
    "DotfilesExporter",
    "ExportStep",
    "ExportStepError",
    "Exporter",
    "NullExporter",
    "PackagesExporter",
    "ServicesExporter",
    "Source",
    "SshExporter",
    "SystemExporter",
    "UsersExporter",
    "get_exporter",
]
