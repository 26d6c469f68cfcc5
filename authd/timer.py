"""One-shot, replaceable countdown to a token's expiration."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from .logs.logger import logger
from .models import ExpirationFired
from .utils import format_duration


def _utc_now() -> datetime:
    return datetime.now(UTC)


class ExpirationTimer:
    """Delivers a single ``ExpirationFired`` wake when the armed expiry elapses.

    The refresh loop selects on ``wake``, a future replaced on every ``arm``.
    Arming again cancels the pending countdown; a superseded callback that
    runs anyway is recognised by its generation number and ignored. When the
    expiry cannot be scheduled (already elapsed, or not representable) the
    wake never completes and the next refresh is left to the file watcher.

    Args:
        clock: Returns the current time as an aware datetime.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._generation = 0
        self._handle: asyncio.TimerHandle | None = None
        self._wake: asyncio.Future[ExpirationFired] | None = None

    @property
    def wake(self) -> asyncio.Future[ExpirationFired]:
        """Future completed by the current arming."""
        if self._wake is None:
            self._wake = asyncio.get_running_loop().create_future()
        return self._wake

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def generation(self) -> int:
        return self._generation

    def now(self) -> datetime:
        return self._clock()

    def arm(self, expiry: datetime | None) -> float | None:
        """Schedule the wake for ``expiry``, superseding any earlier arming.

        A None expiry (one the clock cannot represent) leaves the wake
        never firing.

        Returns:
            The delay in seconds, or None when no countdown was scheduled.
        """
        loop = asyncio.get_running_loop()
        self._supersede(loop)
        if expiry is None:
            self._never("expiry is not representable")
            return None
        try:
            delay = (expiry - self._clock()).total_seconds()
        except (OverflowError, TypeError) as e:
            self._never(f"cannot compute time until {expiry!r}: {e}")
            return None
        if delay <= 0:
            self._never(f"token already expired at {expiry.isoformat()}")
            return None
        try:
            self._handle = loop.call_later(delay, self._fire, self._generation)
        except OverflowError as e:
            self._never(f"expiry {expiry.isoformat()} out of range: {e}")
            return None
        logger.log_event(
            "timer",
            "armed",
            expiry=expiry.isoformat(),
            remaining=format_duration(delay),
            generation=self._generation,
        )
        return delay

    def disarm(self) -> None:
        """Cancel any pending countdown and leave a never-firing wake."""
        if self._wake is None and self._handle is None:
            return
        self._supersede(asyncio.get_running_loop())
        logger.log_event("timer", "disarmed", level=logging.DEBUG)

    def _supersede(self, loop: asyncio.AbstractEventLoop) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._wake is not None and not self._wake.done():
            self._wake.cancel()
        self._wake = loop.create_future()

    def _never(self, reason: str) -> None:
        logger.log_event("timer", "not_armed", level=logging.WARNING, reason=reason)

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            logger.log_event(
                "timer",
                "stale_fire_ignored",
                level=logging.DEBUG,
                generation=generation,
            )
            return
        self._handle = None
        if self._wake is not None and not self._wake.done():
            logger.log_event("timer", "fired")
            self._wake.set_result(ExpirationFired())


__all__ = ["ExpirationTimer"]
