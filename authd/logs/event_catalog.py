"""Human readable texts for logged events, keyed by (domain, action)."""

from __future__ import annotations

import json
from pathlib import Path

_TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")


def _load_event_templates(path: Path = _TEMPLATES_PATH) -> dict[tuple[str, str], str]:
    with path.open(encoding="utf-8") as f:
        raw = json.load(f)
    return {
        (domain, action): text
        for domain, actions in raw.items()
        for action, text in actions.items()
    }


EVENT_TEMPLATES = _load_event_templates()

__all__ = ["EVENT_TEMPLATES"]
