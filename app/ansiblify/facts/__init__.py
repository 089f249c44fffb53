"""Host fact collection.

This module exports the facts provider interface and its live-system
implementation.
"""

from ansiblify.facts.base import (
    CommandUnavailableError,
    FactsError,
    HostFactsProvider,
    HostUser,
    parse_passwd,
)
from ansiblify.facts.system import SystemFacts

__all__ = [
    "CommandUnavailableError",
    "FactsError",
    "HostFactsProvider",
    "HostUser",
    "SystemFacts",
    "parse_passwd",
]
