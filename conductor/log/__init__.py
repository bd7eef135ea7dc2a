"""
Logging and notification package.
Provides process logging setup, the notification manager, and the export of
the notification log to Excel.
"""

from .setup import setup_logging, echo_notification
from .notifications import NotificationEntry, NotificationManager
from .export import export_notifications_to_excel

__all__ = [
    "setup_logging", "echo_notification",
    "NotificationEntry", "NotificationManager",
    "export_notifications_to_excel",
]
