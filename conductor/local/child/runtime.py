import logging
from pathlib import Path
from typing import Callable, Optional, Union

from conductor.local.child.scheduler import CooperativeScheduler, PeriodicTask
from conductor.local.control import Registry, ShutdownChannel, StateChannel
from conductor.log.notifications import NotificationManager

log = logging.getLogger(__name__)


def _noop() -> None:
    pass


class ChildRuntime:
    """
    The polling loop inside a child process.

    Two independent periodic checks drive it: the shutdown check (polled more
    often) and the enabled check. Both act only on transitions, never on a
    repeated observation of the same state.
    """

    def __init__(
        self,
        name: str,
        exec_path: Union[str, Path],
        registry: Registry,
        state_channel: StateChannel,
        shutdown_channel: ShutdownChannel,
        notifications: NotificationManager,
        on_enable: Callable[[], None] = _noop,
        on_disable: Callable[[], None] = _noop,
        shutdown_interval: float = 0.5,
        enabled_interval: float = 1.0,
        scheduler: Optional[CooperativeScheduler] = None,
    ) -> None:
        self.name = name
        self.exec_path = Path(exec_path)
        self.registry = registry
        self.state_channel = state_channel
        self.shutdown_channel = shutdown_channel
        self.notifications = notifications
        self.on_enable = on_enable
        self.on_disable = on_disable

        self.active = False
        self.exiting = False
        self.scheduler = scheduler or CooperativeScheduler()
        self.scheduler.add(PeriodicTask("shutdown_check", shutdown_interval, self.shutdown_check))
        self.scheduler.add(PeriodicTask("enabled_check", enabled_interval, self.enabled_check))

    def shutdown_check(self) -> None:
        """Exits the loop once the shutdown marker is observed."""
        if self.exiting or not self.shutdown_channel.is_requested():
            return
        self._exit("exiting")

    def enabled_check(self) -> None:
        """Activates or deactivates the child's behavior on flag transitions."""
        if self.exiting:
            return
        enabled = self.state_channel.is_enabled(self.name)
        if enabled == self.active:
            return
        if enabled:
            self.on_enable()
            self.active = True
            self.notifications.info(self.name, f"{self.name} activated")
        else:
            self.on_disable()
            self.active = False
            self.notifications.info(self.name, f"{self.name} deactivated")

    def request_stop(self) -> None:
        """Cooperative close request, e.g. from a SIGTERM handler."""
        if not self.exiting:
            self._exit("closing on request")

    def _exit(self, reason: str) -> None:
        self.exiting = True
        if self.active:
            try:
                self.on_disable()
            except Exception as e:
                log.error(f"Deactivation of '{self.name}' failed during exit: {e}", exc_info=True)
            self.active = False
        self.notifications.info(self.name, f"{self.name} {reason}")
        self.scheduler.stop()

    def run(self) -> int:
        """
        Registers the child and polls until shutdown.

        :return: The process exit code.
        """
        if not self.registry.register(self.name, self.exec_path):
            log.warning(f"Continuing unregistered as '{self.name}'.")
        log.info(f"Child '{self.name}' started polling.")
        self.scheduler.run()
        log.info(f"Child '{self.name}' stopped.")
        return 0
