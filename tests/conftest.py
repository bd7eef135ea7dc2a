from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from conductor.local.config import ConductorSettings
from conductor.local.control import ControlDirectory, Registry, ShutdownChannel, StateChannel
from conductor.local.errors import TerminationError
from conductor.local.supervisor import ProcessWindow
from conductor.log.notifications import NotificationManager


class FakeProcess:
    def __init__(self, pid: int, name: str, graceful: bool = True) -> None:
        self.pid = pid
        self.name = name
        self.graceful = graceful
        self.alive = True


class FakePlatform:
    """In-memory process table standing in for psutil."""

    def __init__(self) -> None:
        self.next_pid = 1000
        self.processes: dict[int, FakeProcess] = {}
        self.spawned: list[str] = []
        self.close_requests: list[int] = []
        self.killed: list[str] = []
        self.stubborn: set[str] = set()
        self.spawn_failures: set[str] = set()
        self.unkillable: set[str] = set()
        self.unsignalable: set[str] = set()
        self.uninspectable: set[str] = set()

    def spawn(self, path: Path, name: str) -> FakeProcess:
        if name in self.spawn_failures:
            raise OSError(f"cannot execute {path}")
        self.next_pid += 1
        process = FakeProcess(self.next_pid, name, graceful=name not in self.stubborn)
        self.processes[process.pid] = process
        self.spawned.append(name)
        return process

    def is_alive(self, process: FakeProcess) -> bool:
        return process.alive

    def terminate(self, process: FakeProcess) -> None:
        if process.name in self.unkillable:
            raise TerminationError(f"access denied for PID {process.pid}")
        process.alive = False
        self.killed.append(process.name)

    def list_windows(self, pid: int) -> list[ProcessWindow]:
        if self.processes[pid].name in self.uninspectable:
            raise TerminationError(f"cannot inspect PID {pid}")
        return [ProcessWindow(pid, f"window-{pid}")]

    def request_close(self, window: ProcessWindow) -> None:
        process = self.processes[window.pid]
        if process.name in self.unsignalable:
            raise TerminationError(f"cannot signal PID {window.pid}")
        self.close_requests.append(window.pid)
        if process.graceful:
            process.alive = False


class StepClock:
    """Datetime clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        value = self.now
        self.now += timedelta(seconds=1)
        return value


@pytest.fixture
def control_dir(tmp_path: Path) -> ControlDirectory:
    return ControlDirectory(tmp_path / "control").ensure()


@pytest.fixture
def notifications(control_dir: ControlDirectory) -> NotificationManager:
    return NotificationManager(control_dir.notifications_path, max_history=50, clock=StepClock())


@pytest.fixture
def registry(control_dir: ControlDirectory) -> Registry:
    return Registry(control_dir)


@pytest.fixture
def state(control_dir: ControlDirectory, notifications: NotificationManager) -> StateChannel:
    return StateChannel(control_dir, notifications)


@pytest.fixture
def shutdown_channel(control_dir: ControlDirectory) -> ShutdownChannel:
    return ShutdownChannel(control_dir)


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def settings(tmp_path: Path) -> ConductorSettings:
    return ConductorSettings(
        overrides_path=tmp_path / "overrides.json",
        CONTROL_DIR=tmp_path / "control",
        LOGS_DIR=tmp_path / "logs",
        SHUTDOWN_GRACE_PERIOD=0.0,
        OS_RECLAIM_DELAY=0.0,
    )


@pytest.fixture
def executable(tmp_path: Path) -> Path:
    path = tmp_path / "bin" / "worker.py"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("print('worker')\n")
    return path


def messages(manager: NotificationManager, level: str | None = None) -> list[str]:
    return [e.message for e in manager.get_filtered(level=level)]
