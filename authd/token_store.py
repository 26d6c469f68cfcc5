"""Write-through persistence of the active token."""

from __future__ import annotations

import os
from pathlib import Path

from .errors import TokenStoreError
from .logs.logger import logger
from .models import Token


class TokenStore:
    """Owns the persisted token file and the token last written to it.

    The file holds exactly the bytes of ``Token.raw`` (UTF-8) with no trailing
    delimiter. It is rewritten in place on every refresh; the parent
    directory must already exist.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path).absolute()
        self._current: Token | None = None

    def current(self) -> Token | None:
        return self._current

    def persist(self, token: Token) -> None:
        """Replace the file contents with ``token.raw``.

        On return the full contents are on disk; on failure ``current()`` is
        left untouched.

        Raises:
            TokenStoreError: If the file cannot be written.
        """
        try:
            payload = token.raw.encode("utf-8")
            with open(self.path, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
        except (OSError, UnicodeEncodeError) as e:
            raise TokenStoreError(
                f"Cannot write token file {self.path}: {e}",
                data={"path": str(self.path)},
            ) from e
        self._current = token
        logger.log_event(
            "store", "persisted", fingerprint=token.fingerprint, path=str(self.path)
        )

    def read(self) -> str | None:
        """Return the persisted token text, or None if the file is absent."""
        try:
            return self.path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise TokenStoreError(
                f"Cannot read token file {self.path}: {e}",
                data={"path": str(self.path)},
            ) from e


__all__ = ["TokenStore"]
