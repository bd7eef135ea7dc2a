"""Tests for settings defaults, overrides and runtime updates."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conductor.local.config import ConductorSettings


def test_defaults_are_loaded(tmp_path: Path):
    settings = ConductorSettings(overrides_path=tmp_path / "overrides.json")
    assert settings.NOTIFICATION_HISTORY_SIZE == 200
    assert settings.MASTER_SOURCE == "master"
    assert settings.CHILD_SHUTDOWN_POLL_INTERVAL < settings.CHILD_ENABLED_POLL_INTERVAL


def test_only_modifiable_overrides_apply(tmp_path: Path):
    overrides = tmp_path / "overrides.json"
    overrides.write_text(json.dumps({
        "SHUTDOWN_GRACE_PERIOD": 7.5,
        "MASTER_SOURCE": "hijacked",
        "NOT_A_SETTING": 1,
    }))

    settings = ConductorSettings(overrides_path=overrides)

    assert settings.SHUTDOWN_GRACE_PERIOD == 7.5
    assert settings.MASTER_SOURCE == "master"
    assert not hasattr(settings, "NOT_A_SETTING")


def test_malformed_overrides_are_ignored(tmp_path: Path):
    overrides = tmp_path / "overrides.json"
    overrides.write_text("{not json")
    settings = ConductorSettings(overrides_path=overrides)
    assert settings.SHUTDOWN_GRACE_PERIOD == 3.0


def test_explicit_values_win(tmp_path: Path):
    settings = ConductorSettings(overrides_path=tmp_path / "o.json", CONTROL_DIR=tmp_path / "ctl")
    assert settings.CONTROL_DIR == tmp_path / "ctl"


def test_update_setting_coerces_and_persists(tmp_path: Path):
    overrides = tmp_path / "overrides.json"
    settings = ConductorSettings(overrides_path=overrides)

    ok, _ = settings.update_setting("NOTIFICATION_HISTORY_SIZE", "500")
    assert ok is True
    assert settings.NOTIFICATION_HISTORY_SIZE == 500

    ok, _ = settings.update_setting("AUTO_LAUNCH", "no")
    assert ok is True
    assert settings.AUTO_LAUNCH is False

    saved = json.loads(overrides.read_text())
    assert saved["NOTIFICATION_HISTORY_SIZE"] == 500
    assert saved["AUTO_LAUNCH"] is False
    assert ConductorSettings(overrides_path=overrides).NOTIFICATION_HISTORY_SIZE == 500


def test_update_setting_rejects_bad_input(tmp_path: Path):
    settings = ConductorSettings(overrides_path=tmp_path / "overrides.json")

    ok, message = settings.update_setting("CONTROL_DIR", "/tmp")
    assert ok is False
    assert "not modifiable" in message

    ok, _ = settings.update_setting("SHUTDOWN_GRACE_PERIOD", "soon")
    assert ok is False
    assert settings.SHUTDOWN_GRACE_PERIOD == 3.0


@pytest.mark.parametrize("key, value", [
    ("SHUTDOWN_GRACE_PERIOD", "-1"),
    ("OS_RECLAIM_DELAY", "-0.5"),
    ("CHILD_SHUTDOWN_POLL_INTERVAL", "0"),
    ("CHILD_ENABLED_POLL_INTERVAL", "-2"),
    ("NOTIFICATION_HISTORY_SIZE", "0"),
    ("NOTIFICATION_DISPLAY_COUNT", "-5"),
])
def test_update_setting_rejects_out_of_range_values(tmp_path: Path, key: str, value: str):
    overrides = tmp_path / "overrides.json"
    settings = ConductorSettings(overrides_path=overrides)
    before = getattr(settings, key)

    ok, message = settings.update_setting(key, value)

    assert ok is False
    assert key in message
    assert getattr(settings, key) == before
    assert not overrides.exists()


def test_zero_grace_period_is_allowed(tmp_path: Path):
    settings = ConductorSettings(overrides_path=tmp_path / "overrides.json")
    ok, _ = settings.update_setting("SHUTDOWN_GRACE_PERIOD", "0")
    assert ok is True
    assert settings.SHUTDOWN_GRACE_PERIOD == 0.0


def test_out_of_range_overrides_are_ignored(tmp_path: Path):
    overrides = tmp_path / "overrides.json"
    overrides.write_text(json.dumps({"NOTIFICATION_HISTORY_SIZE": 0, "SHUTDOWN_GRACE_PERIOD": -3, "OS_RECLAIM_DELAY": 2}))

    settings = ConductorSettings(overrides_path=overrides)

    assert settings.NOTIFICATION_HISTORY_SIZE == 200
    assert settings.SHUTDOWN_GRACE_PERIOD == 3.0
    assert settings.OS_RECLAIM_DELAY == 2
