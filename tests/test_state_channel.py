"""Tests for the enabled-marker channel and the shutdown marker."""

from __future__ import annotations

from pathlib import Path

import pytest

from conductor.local.control import ControlDirectory, ShutdownChannel, StateChannel
from conductor.log.notifications import NotificationManager

from conftest import messages


class TestStateChannel:
    def test_marker_presence_is_the_flag(self, state: StateChannel, control_dir: ControlDirectory):
        assert state.is_enabled("worker1") is False
        (control_dir.enabled_dir / "worker1.enabled").touch()
        assert state.is_enabled("worker1") is True

    def test_marker_is_zero_bytes(self, state: StateChannel, control_dir: ControlDirectory):
        state.set_enabled("worker1", True)
        assert (control_dir.enabled_dir / "worker1.enabled").stat().st_size == 0

    def test_repeated_toggle_alternates(self, state: StateChannel):
        assert [state.toggle("worker1") for _ in range(4)] == [True, False, True, False]

    def test_set_enabled_is_idempotent(self, state: StateChannel, notifications: NotificationManager):
        assert state.set_enabled("worker1", True) is True
        assert state.set_enabled("worker1", True) is False

        assert messages(notifications) == ["worker1 enabled"]

    def test_disable_emits_one_notification(self, state: StateChannel, notifications: NotificationManager):
        state.set_enabled("worker1", False)
        state.set_enabled("worker1", True)
        state.set_enabled("worker1", False)
        state.set_enabled("worker1", False)

        assert messages(notifications) == ["worker1 enabled", "worker1 disabled"]
        assert all(e.source == "master" for e in notifications.get_filtered())

    def test_failed_write_keeps_state_and_warns(
        self, state: StateChannel, notifications: NotificationManager, monkeypatch: pytest.MonkeyPatch
    ):
        def refuse(self, *args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "touch", refuse)

        assert state.set_enabled("worker1", True) is False
        assert state.is_enabled("worker1") is False
        assert state.toggle("worker1") is False
        warnings = notifications.get_filtered(level="warning")
        assert len(warnings) == 2
        assert "worker1" in warnings[0].message
        assert notifications.get_filtered(level="info") == []

    def test_enabled_names(self, state: StateChannel):
        state.set_enabled("a", True)
        state.set_enabled("b", True)
        state.set_enabled("b", False)
        state.set_enabled("c", True)
        assert state.enabled_names() == {"a", "c"}

    def test_without_notification_manager(self, control_dir: ControlDirectory):
        channel = StateChannel(control_dir)
        assert channel.toggle("worker1") is True

    def test_invalid_name_raises(self, state: StateChannel):
        with pytest.raises(ValueError):
            state.toggle("../x")


class TestShutdownChannel:
    def test_request_and_clear(self, shutdown_channel: ShutdownChannel, control_dir: ControlDirectory):
        assert shutdown_channel.is_requested() is False
        shutdown_channel.request()
        assert control_dir.shutdown_marker_path.exists()
        assert shutdown_channel.is_requested() is True
        shutdown_channel.clear()
        assert shutdown_channel.is_requested() is False

    def test_clear_ignores_failures(self, shutdown_channel: ShutdownChannel, monkeypatch: pytest.MonkeyPatch):
        shutdown_channel.request()

        def refuse(self, *args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "unlink", refuse)
        shutdown_channel.clear()

    def test_clear_when_absent(self, shutdown_channel: ShutdownChannel):
        shutdown_channel.clear()
        assert shutdown_channel.is_requested() is False
