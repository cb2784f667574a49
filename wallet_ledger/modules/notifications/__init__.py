"""Notification exports"""

from .notifier import LoggingNotifier, Notifier

__all__ = ["LoggingNotifier", "Notifier"]
