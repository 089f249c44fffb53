"""Unit tests for role scaffolding."""

from pathlib import Path
from unittest.mock import patch

import pytest
from ansiblify.core.scaffold import ROLE_SUBDIRS, ScaffoldError, ensure_unit


class TestEnsureUnit:
    """Tests for ensure_unit function."""

    def test_creates_standard_layout(self, tmp_path: Path) -> None:
        """All role sub-directories and placeholders are created."""
        unit_dir = ensure_unit(tmp_path / "roles", "users")

        assert unit_dir == tmp_path / "roles" / "users"
        for subdir in ROLE_SUBDIRS:
            assert (unit_dir / subdir).is_dir()
        for name in ("tasks", "handlers", "defaults", "vars", "meta"):
            assert (unit_dir / name / "main.yml").is_file()

    def test_default_enables_role(self, tmp_path: Path) -> None:
        """defaults/main.yml carries the <key>_enabled flag."""
        unit_dir = ensure_unit(tmp_path, "packages")

        assert "packages_enabled: true" in (unit_dir / "defaults" / "main.yml").read_text()

    def test_meta_names_role(self, tmp_path: Path) -> None:
        """meta/main.yml names the role."""
        unit_dir = ensure_unit(tmp_path, "ssh")

        meta = (unit_dir / "meta" / "main.yml").read_text()
        assert "galaxy_info:" in meta
        assert "Auto-generated role for ssh" in meta

    def test_rerun_is_deterministic(self, tmp_path: Path) -> None:
        """Re-scaffolding overwrites placeholders with identical content."""
        unit_dir = ensure_unit(tmp_path, "vm")
        first = {p: p.read_bytes() for p in unit_dir.rglob("*.yml")}
        (unit_dir / "tasks" / "main.yml").write_text("changed")

        ensure_unit(tmp_path, "vm")

        assert {p: p.read_bytes() for p in unit_dir.rglob("*.yml")} == first

    def test_keeps_exported_files(self, tmp_path: Path) -> None:
        """Files already exported into files/ survive re-scaffolding."""
        unit_dir = ensure_unit(tmp_path, "system")
        exported = unit_dir / "files" / "hosts"
        exported.write_text("127.0.0.1 localhost\n")

        ensure_unit(tmp_path, "system")

        assert exported.read_text() == "127.0.0.1 localhost\n"

    @pytest.mark.parametrize("key", ["", "Users", "ssh-keys", "../etc", "vm2", "users\n"])
    def test_invalid_key(self, tmp_path: Path, key: str) -> None:
        """Keys outside [a-z_]+ are rejected without side effects."""
        with pytest.raises(ScaffoldError, match="Invalid role key"):
            ensure_unit(tmp_path / "roles", key)

        assert not (tmp_path / "roles").exists()

    def test_write_failure_is_wrapped(self, tmp_path: Path) -> None:
        """Filesystem errors surface as ScaffoldError."""
        with (
            patch(
                "ansiblify.core.scaffold.atomic_write_text",
                side_effect=OSError("No space left on device"),
            ),
            pytest.raises(ScaffoldError, match="No space left"),
        ):
            ensure_unit(tmp_path, "users")
