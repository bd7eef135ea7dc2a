import time
import logging
from datetime import datetime
from enum import Enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from conductor.local.control import ChildDescriptor, Registry, ShutdownChannel
from conductor.local.errors import LaunchError
from conductor.local.supervisor import shutdown
from conductor.local.supervisor.capabilities import ProcessPlatform
from conductor.log.notifications import NotificationManager

log = logging.getLogger(__name__)


class SupervisorState(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


@dataclass
class ChildProcessHandle:
    name: str
    pid: int
    launch_time: datetime
    process: Any


class Supervisor:
    """
    Launches the registered children, tracks their process handles and runs
    the shutdown escalation.

    Lifecycle: IDLE -> LAUNCHING -> RUNNING -> SHUTTING_DOWN -> TERMINATED.
    """

    def __init__(
        self,
        registry: Registry,
        shutdown_channel: ShutdownChannel,
        notifications: NotificationManager,
        platform: ProcessPlatform,
        grace_period: float = 3.0,
        reclaim_delay: float = 1.0,
        source: str = "master",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if grace_period < 0 or reclaim_delay < 0:
            raise ValueError("Grace period and reclaim delay must not be negative.")
        self.registry = registry
        self.shutdown_channel = shutdown_channel
        self.notifications = notifications
        self.platform = platform
        self.grace_period = grace_period
        self.reclaim_delay = reclaim_delay
        self.source = source
        self.sleep = sleep

        self.state = SupervisorState.IDLE
        self.handles: Dict[str, ChildProcessHandle] = {}

    def _set_state(self, state: SupervisorState) -> None:
        log.debug(f"Supervisor state {self.state.value} -> {state.value}")
        self.state = state

    def start(self, auto_launch: bool = True) -> None:
        """Leaves IDLE, launching every registered child first if `auto_launch` is set."""
        if self.state is not SupervisorState.IDLE:
            log.warning(f"Supervisor already started (state: {self.state.value}).")
            return
        if auto_launch:
            self._set_state(SupervisorState.LAUNCHING)
            launched, failed = self.launch_all()
            log.info(f"Launch complete: {launched} started, {failed} failed.")
        self._set_state(SupervisorState.RUNNING)

    def _can_launch(self) -> bool:
        if self.state in (SupervisorState.SHUTTING_DOWN, SupervisorState.TERMINATED):
            log.warning(f"Refusing to launch children while {self.state.value}.")
            return False
        return True

    def launch_all(self) -> Tuple[int, int]:
        """
        Attempts to launch every Registry entry. One failure never aborts the batch.

        :return: (launched, failed) counts.
        """
        if not self._can_launch():
            return 0, 0
        launched = failed = 0
        for descriptor in self.registry.list():
            if self._is_running(descriptor.name):
                log.debug(f"'{descriptor.name}' is already running, skipping.")
                continue
            if self._launch_descriptor(descriptor):
                launched += 1
            else:
                failed += 1
        return launched, failed

    def launch(self, name: str) -> bool:
        """Launches a single registered child."""
        if not self._can_launch():
            return False
        descriptor = self.registry.get(name)
        if descriptor is None:
            self.notifications.error(self.source, str(LaunchError(name, "not registered")))
            return False
        if self._is_running(name):
            self.notifications.warning(self.source, f"{name} is already running (PID {self.handles[name].pid})")
            return False
        return self._launch_descriptor(descriptor)

    def _launch_descriptor(self, descriptor: ChildDescriptor) -> bool:
        try:
            handle = self._spawn(descriptor)
        except LaunchError as e:
            self.notifications.error(self.source, str(e))
            return False
        self.handles[handle.name] = handle
        self.notifications.info(self.source, f"Launched {handle.name} (PID {handle.pid})")
        return True

    def _spawn(self, descriptor: ChildDescriptor) -> ChildProcessHandle:
        path = descriptor.exec_path
        if not path.exists():
            raise LaunchError(descriptor.name, f"path does not exist: {path}")
        try:
            process = self.platform.spawn(path, descriptor.name)
        except Exception as e:
            raise LaunchError(descriptor.name, str(e)) from e
        return ChildProcessHandle(descriptor.name, process.pid, datetime.now(), process)

    def _is_running(self, name: str) -> bool:
        handle = self.handles.get(name)
        return handle is not None and self.platform.is_alive(handle.process)

    def is_tracked(self, name: str) -> bool:
        return name in self.handles

    def reap(self) -> List[str]:
        """Stops tracking children that exited on their own and reports them."""
        if self.state is not SupervisorState.RUNNING:
            return []
        exited = [name for name, handle in self.handles.items() if not self.platform.is_alive(handle.process)]
        for name in exited:
            handle = self.handles.pop(name)
            self.notifications.warning(self.source, f"{name} (PID {handle.pid}) is no longer running")
        return exited

    def request_shutdown(self) -> Dict[str, str]:
        """
        Runs the shutdown escalation and ends in TERMINATED.

        :return: Per-child outcome: 'graceful', 'forced' or 'failed'.
        """
        if self.state in (SupervisorState.SHUTTING_DOWN, SupervisorState.TERMINATED):
            log.info("Shutdown already performed.")
            return {}
        self._set_state(SupervisorState.SHUTTING_DOWN)
        try:
            return shutdown.graceful_shutdown_sequence(self)
        finally:
            self._set_state(SupervisorState.TERMINATED)

    def get_handle(self, name: str) -> Optional[ChildProcessHandle]:
        return self.handles.get(name)
