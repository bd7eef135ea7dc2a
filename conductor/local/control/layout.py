import logging
from pathlib import Path
from typing import Union

from conductor.local.errors import ControlDirectoryError

log = logging.getLogger(__name__)

SCRIPTS_DIR_NAME = "scripts"
ENABLED_DIR_NAME = "enabled"
NOTIFICATIONS_FILE_NAME = "notifications.txt"
SHUTDOWN_MARKER_NAME = "shutdown.marker"
DESCRIPTOR_SUFFIX = ".info"
ENABLED_SUFFIX = ".enabled"


def validate_child_name(name: str) -> str:
    """
    Checks that a child name can be used as a file stem inside the control directory.

    :param name: The child name.
    :return: The name, unchanged.
    :raises ValueError: If the name is empty, hidden or contains a path separator.
    """
    if not name or not name.strip():
        raise ValueError("Child name must not be empty.")
    if name.startswith(".") or any(sep in name for sep in ("/", "\\", "\0")):
        raise ValueError(f"Invalid child name '{name}'.")
    return name


class ControlDirectory:
    """
    The shared filesystem root used as the sole communication medium
    between the master and its children.

    Layout::

        scripts/<name>.info      child descriptors
        enabled/<name>.enabled   zero-byte enabled markers
        notifications.txt        durable notification log
        shutdown.marker          zero-byte shutdown marker
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self.scripts_dir = self.root / SCRIPTS_DIR_NAME
        self.enabled_dir = self.root / ENABLED_DIR_NAME
        self.notifications_path = self.root / NOTIFICATIONS_FILE_NAME
        self.shutdown_marker_path = self.root / SHUTDOWN_MARKER_NAME

    def ensure(self) -> "ControlDirectory":
        """
        Creates the control root and its subdirectories if they are missing.

        :raises ControlDirectoryError: If any of the directories cannot be created.
        """
        try:
            for directory in (self.root, self.scripts_dir, self.enabled_dir):
                directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ControlDirectoryError(f"Cannot create control directory '{self.root}': {e}") from e
        log.debug(f"Control directory ready at {self.root}")
        return self

    def descriptor_path(self, name: str) -> Path:
        return self.scripts_dir / f"{validate_child_name(name)}{DESCRIPTOR_SUFFIX}"

    def enabled_marker_path(self, name: str) -> Path:
        return self.enabled_dir / f"{validate_child_name(name)}{ENABLED_SUFFIX}"

    def __repr__(self) -> str:
        return f"ControlDirectory({str(self.root)!r})"
