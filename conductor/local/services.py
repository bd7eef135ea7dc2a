import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from conductor.local.config import ConductorSettings
from conductor.local.control import ControlDirectory, Registry, ShutdownChannel, StateChannel
from conductor.local.supervisor import ProcessPlatform, PsutilPlatform, Supervisor
from conductor.log.notifications import NotificationManager

log = logging.getLogger(__name__)


@dataclass
class Services:
    """The control-plane components of one process, built once and passed around explicitly."""
    settings: ConductorSettings
    control_dir: ControlDirectory
    registry: Registry
    state: StateChannel
    shutdown: ShutdownChannel
    notifications: NotificationManager
    supervisor: Optional[Supervisor] = None


def _build_common(settings: ConductorSettings, control_root: Union[str, Path], source: str) -> Services:
    control_dir = ControlDirectory(control_root).ensure()
    notifications = NotificationManager(
        control_dir.notifications_path,
        max_history=int(settings.NOTIFICATION_HISTORY_SIZE),
    )
    return Services(
        settings=settings,
        control_dir=control_dir,
        registry=Registry(control_dir),
        state=StateChannel(control_dir, notifications, source=source),
        shutdown=ShutdownChannel(control_dir),
        notifications=notifications,
    )


def build_master_services(settings: ConductorSettings, platform: Optional[ProcessPlatform] = None) -> Services:
    """
    Builds the master's components and seeds the notification history from disk.

    :raises ControlDirectoryError: If the control directory cannot be created.
    """
    services = _build_common(settings, settings.CONTROL_DIR, settings.MASTER_SOURCE)
    services.notifications.load_history()
    if platform is None:
        platform = PsutilPlatform(
            control_root=services.control_dir.root,
            logs_dir=Path(settings.LOGS_DIR),
            python_executable=settings.PYTHON_EXECUTABLE,
        )
    services.supervisor = Supervisor(
        registry=services.registry,
        shutdown_channel=services.shutdown,
        notifications=services.notifications,
        platform=platform,
        grace_period=float(settings.SHUTDOWN_GRACE_PERIOD),
        reclaim_delay=float(settings.OS_RECLAIM_DELAY),
        source=settings.MASTER_SOURCE,
    )
    return services


def build_child_services(settings: ConductorSettings, name: str, control_root: Optional[Union[str, Path]] = None) -> Services:
    """Builds the components a child needs. Children only read the state channel."""
    return _build_common(settings, control_root or settings.CONTROL_DIR, name)
