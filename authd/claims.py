"""Expiration claim decoding for issued tokens."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import jwt

from .constants import TOKEN_VERIFY_ALGORITHMS
from .errors import MalformedToken
from .logs.logger import logger
from .models import Token


class ClaimDecoder:
    """Extracts the expiration instant embedded in a token.

    By default the signature is not checked: the daemon received the token
    directly from the identity provider and only needs its ``exp`` claim.
    Passing ``verify_key`` (the provider's public key) turns on full signature
    verification with ``algorithms``.

    Args:
        verify_key: Optional PEM public key used to verify issued tokens.
        algorithms: Algorithms accepted when verifying.
    """

    def __init__(
        self,
        verify_key: str | bytes | None = None,
        algorithms: Sequence[str] = TOKEN_VERIFY_ALGORITHMS,
    ) -> None:
        self.verify_key = verify_key
        self.algorithms = list(algorithms)

    @property
    def verifying(self) -> bool:
        return self.verify_key is not None

    def announce(self) -> None:
        """Log which decoding mode is in effect."""
        if self.verifying:
            logger.log_event(
                "claims", "verified", algorithms=",".join(self.algorithms)
            )
        else:
            logger.log_event("claims", "unverified", level=logging.WARNING)

    def claims(self, token: Token) -> dict[str, Any]:
        """Return the decoded claim set of ``token``.

        Raises:
            MalformedToken: If the token cannot be decoded (or verified).
        """
        try:
            if self.verify_key is None:
                return jwt.decode(
                    token.raw,
                    algorithms=self.algorithms,
                    options={"verify_signature": False},
                )
            # Expiry is the timer's business; audience is not ours to check.
            return jwt.decode(
                token.raw,
                self.verify_key,
                algorithms=self.algorithms,
                options={"verify_exp": False, "verify_aud": False},
            )
        except jwt.InvalidTokenError as e:
            raise MalformedToken(
                f"Cannot decode token claims: {e}",
                data={"token": token.fingerprint},
            ) from e

    def expiry(self, token: Token) -> datetime | None:
        """Return the expiration instant of ``token`` as an aware UTC datetime.

        An already elapsed expiry is returned as is. A numeric ``exp`` beyond
        the range of ``datetime`` yields None: the token is valid but its
        expiry cannot be scheduled.

        Raises:
            MalformedToken: If ``exp`` is absent or not a number.
        """
        exp = self.claims(token).get("exp")
        if exp is None:
            raise MalformedToken(
                "Token has no exp claim", data={"token": token.fingerprint}
            )
        # bool is an int subclass but never a valid timestamp
        if isinstance(exp, bool) or not isinstance(exp, int | float):
            raise MalformedToken(
                f"Token exp claim is not numeric: {exp!r}",
                data={"token": token.fingerprint},
            )
        try:
            return datetime.fromtimestamp(exp, tz=UTC)
        except (OverflowError, OSError, ValueError):
            logger.log_event(
                "claims",
                "exp_out_of_range",
                level=logging.WARNING,
                exp=exp,
                fingerprint=token.fingerprint,
            )
            return None


__all__ = ["ClaimDecoder"]
