"""Centralized error hierarchy for the authentication daemon.

Every error raised inside the daemon is an ``AuthdError`` subclass carrying a
``category`` used by the structured error log line printed before the process
exits. None of these errors is recovered inside the refresh loop: the daemon is
fail-stop and leaves restarts to a process supervisor.

Classes:
  AuthdError             – Base for all daemon errors.
  TransportError         – The login call failed (network, HTTP status, body).
  TokenStoreError        – Reading or writing token/key/cert files failed.
  AssertionEncodingError – Signing the login assertion failed.
  MalformedToken         – The issued token's claim could not be decoded.
  WatchSetupError        – Filesystem observation could not be established.
  WakeChannelError       – A wake event source stopped delivering.
  ConfigError            – Startup configuration is missing or invalid.
"""

from __future__ import annotations

from collections.abc import Mapping


class AuthdError(Exception):
    """Base class for all daemon errors with metadata support.

    Attributes:
        category: Short error category name used in structured log lines.
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    category = "internal"
    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class TransportError(AuthdError):
    """Raised when a login request fails.

    Covers connection failures, timeouts, non-2xx responses and response
    bodies that do not carry a token.
    """

    category = "transport"


class TokenStoreError(AuthdError):
    """Raised for I/O failures on the token file or on key/cert material."""

    category = "io"


class AssertionEncodingError(AuthdError):
    """Raised when the signed login assertion cannot be produced."""

    category = "encoding"


class MalformedToken(AuthdError):
    """Raised when an issued token's expiration claim cannot be decoded."""

    category = "claim"


class WatchSetupError(AuthdError):
    """Raised when the token file's directory cannot be observed."""

    category = "watch"


class WakeChannelError(AuthdError):
    """Raised when a wake event channel is closed under the refresh loop."""

    category = "channel"


class ConfigError(AuthdError):
    """Raised when the daemon configuration cannot be resolved."""

    category = "config"


__all__ = [
    "AuthdError",
    "TransportError",
    "TokenStoreError",
    "AssertionEncodingError",
    "MalformedToken",
    "WatchSetupError",
    "WakeChannelError",
    "ConfigError",
]
