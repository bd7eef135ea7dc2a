import logging

from conductor.local.control.layout import ControlDirectory

log = logging.getLogger(__name__)


class ShutdownChannel:
    """
    The global shutdown flag, encoded as the presence of `shutdown.marker`.

    The master creates it when shutdown starts and removes it once the
    escalation has finished. Children poll it and exit when it appears.
    """

    def __init__(self, control_dir: ControlDirectory) -> None:
        self.control_dir = control_dir

    @property
    def marker_path(self):
        return self.control_dir.shutdown_marker_path

    def request(self) -> None:
        """Creates the shutdown marker. Raises OSError if it cannot be written."""
        self.marker_path.touch(exist_ok=True)
        log.info("Shutdown marker created.")

    def is_requested(self) -> bool:
        return self.marker_path.exists()

    def clear(self) -> None:
        """Removes the shutdown marker, ignoring any failure."""
        try:
            self.marker_path.unlink(missing_ok=True)
            log.debug("Shutdown marker removed.")
        except OSError as e:
            log.debug(f"Could not remove shutdown marker: {e}")
