"""Event-style logger used across the daemon."""

from __future__ import annotations

import logging
import os

from .event_catalog import EVENT_TEMPLATES


class DaemonLogger:
    def __init__(self, name: str = "authd") -> None:
        # Fixed width for event name column when in debug (alignment)
        self._event_name_width = 32
        self.logger = logging.getLogger(name)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        **kwargs: object,
    ) -> None:
        event_name = f"{domain}_{action}".lower()
        template = EVENT_TEMPLATES.get((domain, action))
        if template:
            try:
                human_text = template.format(**kwargs)
            except (KeyError, IndexError, ValueError):
                human_text = template
        else:
            human_text = f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
        self._log(level, event_name, human_text, **kwargs)

    def _log(
        self,
        level: int,
        event_name: str,
        human_text: str,
        **kwargs: object,
    ) -> None:
        if self._is_debug_enabled():
            msg = self._build_debug_message(
                event_name, human_text, kwargs, self._event_name_width
            )
        else:
            msg = human_text
        self.logger.log(level, msg)

    @staticmethod
    def _is_debug_enabled() -> bool:
        return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    @staticmethod
    def _build_debug_message(
        event_name: str, human_text: str, kwargs: dict[str, object], width: int
    ) -> str:
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        # Pad / truncate event name to a fixed column for alignment
        if len(event_name) <= width:
            ev = event_name.ljust(width)
        else:
            ev = event_name[: width - 1] + "…"
        base = f"{ev} {human_text}"
        if context:
            base = f"{base} ({context})"
        return base


logger = DaemonLogger()
