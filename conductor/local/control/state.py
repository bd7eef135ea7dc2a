import logging
from typing import TYPE_CHECKING, Optional, Set

from conductor.local.control.layout import ControlDirectory, ENABLED_SUFFIX
from conductor.local.errors import ToggleError

if TYPE_CHECKING:
    from conductor.log.notifications import NotificationManager

log = logging.getLogger(__name__)


class StateChannel:
    """
    Per-child enabled flag, encoded as the presence of `enabled/<name>.enabled`.

    Only the master writes markers; children poll `is_enabled` and act on
    transitions of their own last-observed value.
    """

    def __init__(
        self,
        control_dir: ControlDirectory,
        notifications: Optional["NotificationManager"] = None,
        source: str = "master",
    ) -> None:
        self.control_dir = control_dir
        self.notifications = notifications
        self.source = source

    def is_enabled(self, name: str) -> bool:
        return self.control_dir.enabled_marker_path(name).exists()

    def enabled_names(self) -> Set[str]:
        """Returns the names of all children whose marker is present."""
        if not self.control_dir.enabled_dir.is_dir():
            return set()
        return {p.name[:-len(ENABLED_SUFFIX)] for p in self.control_dir.enabled_dir.glob(f"*{ENABLED_SUFFIX}")}

    def set_enabled(self, name: str, enabled: bool) -> bool:
        """
        Moves the flag of `name` to `enabled`.

        Setting the current value again is a no-op. A real change emits exactly
        one info notification; a failed change emits a warning and keeps the
        previous state.

        :return: True if the state changed.
        """
        if self.is_enabled(name) == enabled:
            return False
        try:
            self._write_marker(name, enabled)
        except ToggleError as e:
            self._notify("warning", str(e))
            return False
        self._notify("info", f"{name} {'enabled' if enabled else 'disabled'}")
        return True

    def toggle(self, name: str) -> bool:
        """
        Negates the flag of `name`. Not atomic across processes, which is fine
        as long as the master is the only writer.

        :return: The resulting state.
        """
        current = self.is_enabled(name)
        self.set_enabled(name, not current)
        return self.is_enabled(name)

    def _write_marker(self, name: str, enabled: bool) -> None:
        marker = self.control_dir.enabled_marker_path(name)
        try:
            if enabled:
                marker.touch(exist_ok=True)
            else:
                marker.unlink(missing_ok=True)
        except OSError as e:
            action = "enable" if enabled else "disable"
            raise ToggleError(f"Could not {action} '{name}': {e}") from e

    def _notify(self, level: str, message: str) -> None:
        if self.notifications is not None:
            self.notifications.log(level, self.source, message)
        else:
            log.log(logging.WARNING if level == "warning" else logging.INFO, message)
