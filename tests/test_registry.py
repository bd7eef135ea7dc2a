"""Tests for child descriptor registration and discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from conductor.local.control import ControlDirectory, Registry, validate_child_name
from conductor.local.errors import ControlDirectoryError


class TestRegistry:
    def test_register_writes_descriptor_file(self, registry: Registry, control_dir: ControlDirectory, tmp_path: Path):
        exe = tmp_path / "worker1.py"
        assert registry.register("worker1", exe) is True

        text = (control_dir.scripts_dir / "worker1.info").read_text(encoding="utf-8")
        assert text.splitlines() == ["name=worker1", f"path={exe.absolute()}"]

    def test_reregistration_keeps_one_descriptor_with_latest_path(self, registry: Registry, tmp_path: Path):
        registry.register("worker1", tmp_path / "old.py")
        registry.register("worker1", tmp_path / "new.py")

        descriptors = [d for d in registry.list() if d.name == "worker1"]
        assert len(descriptors) == 1
        assert descriptors[0].exec_path == (tmp_path / "new.py").absolute()

    def test_list_returns_all_descriptors(self, registry: Registry, tmp_path: Path):
        for name in ("b", "a", "c"):
            registry.register(name, tmp_path / f"{name}.exe")

        assert [d.name for d in registry.list()] == ["a", "b", "c"]

    def test_list_on_missing_directory_is_empty(self, tmp_path: Path):
        assert Registry(ControlDirectory(tmp_path / "nowhere")).list() == []

    def test_malformed_descriptor_is_skipped(self, registry: Registry, control_dir: ControlDirectory, tmp_path: Path):
        registry.register("good", tmp_path / "good.py")
        (control_dir.scripts_dir / "bad.info").write_text("garbage without separator\n")

        assert [d.name for d in registry.list()] == ["good"]

    def test_write_failure_is_swallowed(self, registry: Registry, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr(Path, "write_text", refuse)

        assert registry.register("worker1", tmp_path / "w.py") is False
        monkeypatch.undo()
        assert registry.list() == []

    def test_invalid_name_is_rejected_without_raising(self, registry: Registry, tmp_path: Path):
        assert registry.register("../escape", tmp_path / "w.py") is False
        assert registry.register("", tmp_path / "w.py") is False

    def test_get_and_unregister(self, registry: Registry, tmp_path: Path):
        registry.register("worker1", tmp_path / "w.py")
        assert registry.get("worker1").exec_path == (tmp_path / "w.py").absolute()

        assert registry.unregister("worker1") is True
        assert registry.get("worker1") is None
        assert registry.unregister("worker1") is False

    def test_discovered_at_is_set(self, registry: Registry, tmp_path: Path):
        registry.register("worker1", tmp_path / "w.py")
        assert registry.get("worker1").discovered_at is not None


class TestControlDirectory:
    def test_ensure_creates_layout(self, tmp_path: Path):
        control = ControlDirectory(tmp_path / "root").ensure()
        assert control.scripts_dir.is_dir()
        assert control.enabled_dir.is_dir()
        assert control.notifications_path == tmp_path / "root" / "notifications.txt"
        assert control.shutdown_marker_path == tmp_path / "root" / "shutdown.marker"

    def test_ensure_failure_is_fatal(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(ControlDirectoryError):
            ControlDirectory(blocker / "control").ensure()

    @pytest.mark.parametrize("name", ["", "  ", ".hidden", "a/b", "a\\b"])
    def test_invalid_names(self, name: str):
        with pytest.raises(ValueError):
            validate_child_name(name)
