"""ansiblify - Snapshot a running host into an Ansible project."""

__version__ = "0.1.0"
