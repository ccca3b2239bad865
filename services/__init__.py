"""Desktop-facing services: volume and sink-change notifications."""

from services.notifier import DesktopNotifier, NotifierConfig

__all__ = ["DesktopNotifier", "NotifierConfig"]
