"""Value types shared by the refresh loop and its collaborators."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .constants import TOKEN_FINGERPRINT_LENGTH


@dataclass(frozen=True)
class Token:
    """Bearer credential issued by the identity provider.

    Attributes:
        raw: The exact string returned by the login call. This is what gets
            persisted and what downstream clients present.
    """

    raw: str

    @property
    def fingerprint(self) -> str:
        """Short digest of the token, safe to log."""
        digest = hashlib.sha256(self.raw.encode("utf-8")).hexdigest()
        return digest[:TOKEN_FINGERPRINT_LENGTH]

    def __repr__(self) -> str:
        return f"Token(fingerprint={self.fingerprint})"


@dataclass(frozen=True)
class Uninitialized:
    """No token has been obtained yet."""


@dataclass(frozen=True)
class Active:
    """A token obtained by the latest successful refresh cycle."""

    token: Token


DaemonState = Uninitialized | Active


class LoopPhase(Enum):
    """Phases of the refresh loop state machine.

    Attributes:
        INITIALIZING: Started, initial refresh not performed yet.
        WAITING: Suspended until a wake event arrives.
        REFRESHING: Running one login/persist/arm cycle.
    """

    INITIALIZING = "initializing"
    WAITING = "waiting"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class ExpirationFired:
    """Wake event: the armed token expiration elapsed."""


@dataclass(frozen=True)
class TokenFileRemoved:
    """Wake event: the persisted token file was deleted."""

    path: Path


WakeEvent = ExpirationFired | TokenFileRemoved

__all__ = [
    "Token",
    "Uninitialized",
    "Active",
    "DaemonState",
    "LoopPhase",
    "ExpirationFired",
    "TokenFileRemoved",
    "WakeEvent",
]
