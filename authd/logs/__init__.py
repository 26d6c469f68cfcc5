"""Event logging for the daemon: the template catalog and DaemonLogger."""

from .event_catalog import EVENT_TEMPLATES
from .logger import DaemonLogger, logger

__all__ = ["DaemonLogger", "logger", "EVENT_TEMPLATES"]
