import logging
import sys
from pathlib import Path
from typing import Optional

from conductor.log.notifications import NotificationEntry

NOTIFICATIONS_LOGGER_NAME = "conductor.notifications"
_LEVEL_MAP = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


class MainFormatter(logging.Formatter):
    """Formats regular records and prints notification echoes without a prefix."""

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s')

    def format(self, record):
        if record.name == NOTIFICATIONS_LOGGER_NAME:
            return record.getMessage()
        return super().format(record)


def setup_logging(console_level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """
    Configures the root logger for the current process.
    Sets up a console handler and, when a path is given, a file handler,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param log_file: Optional file that receives every record at DEBUG level.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- File Handler (optional) ---
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'))
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to initialize file logging handler at '{log_file}': {e}")


def echo_notification(entry: NotificationEntry) -> None:
    """Notification observer that mirrors entries to the console logger."""
    logging.getLogger(NOTIFICATIONS_LOGGER_NAME).log(
        _LEVEL_MAP.get(entry.level, logging.INFO),
        f"[{entry.level.upper()}] [{entry.source}] {entry.message}",
    )
