"""Main authentication daemon loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta

from .claims import ClaimDecoder
from .errors import WakeChannelError
from .login_client import LoginClientProtocol
from .logs.logger import logger
from .models import (
    Active,
    DaemonState,
    ExpirationFired,
    LoopPhase,
    Token,
    TokenFileRemoved,
    Uninitialized,
    WakeEvent,
)
from .retry import retry_transport
from .timer import ExpirationTimer
from .token_store import TokenStore
from .watcher import FileWatcher


class RefreshLoop:
    """Keeps one valid token on disk, refreshing on expiry or file removal.

    The loop performs an initial refresh, then waits for whichever wake comes
    first: the expiration timer or the removal watcher. Each wake runs exactly
    one refresh cycle (login, decode expiry, persist, re-arm). Cycles never
    overlap because they only run on the loop's own task between waits. Any
    error propagates out of ``run`` and is fatal.

    The loop owns the watcher handle: the observer thread keeps delivering
    removals only while this object holds it started.

    Args:
        client: Performs one login call and returns the raw token.
        store: Persists the active token.
        timer: Countdown to the active token's expiry.
        watcher: Source of token file removal events.
        decoder: Extracts the expiry from issued tokens.
        refresh_margin: Seconds before expiry at which the timer fires.
        login_attempts: Attempts per login; 1 keeps fail-stop on the first
            transport error.
    """

    def __init__(
        self,
        client: LoginClientProtocol,
        store: TokenStore,
        timer: ExpirationTimer,
        watcher: FileWatcher,
        decoder: ClaimDecoder,
        *,
        refresh_margin: float = 0.0,
        login_attempts: int = 1,
    ) -> None:
        self.client = client
        self.store = store
        self.timer = timer
        self.watcher = watcher
        self.decoder = decoder
        self.refresh_margin = timedelta(seconds=refresh_margin)
        self.login_attempts = login_attempts
        self._state: DaemonState = Uninitialized()
        self._phase = LoopPhase.INITIALIZING
        self._refreshing = False
        self._refresh_count = 0
        self._removal_wait: asyncio.Task[TokenFileRemoved] | None = None

    @property
    def state(self) -> DaemonState:
        return self._state

    @property
    def phase(self) -> LoopPhase:
        return self._phase

    @property
    def refresh_count(self) -> int:
        """Number of completed refresh cycles."""
        return self._refresh_count

    async def run(self) -> None:
        """Start the daemon loop. Returns only by raising."""
        logger.log_event("daemon", "start")
        self.watcher.start()
        # Refresh authentication token at the start.
        await self.refresh("startup")
        while True:
            event = await self.wait_for_wake()
            await self.refresh(_describe(event))

    async def wait_for_wake(self) -> WakeEvent:
        """Suspend until the timer fires or the token file is removed.

        When both are ready only the removal is consumed; the refresh that
        follows re-arms the timer, discarding its pending wake.
        """
        self._phase = LoopPhase.WAITING
        logger.log_event("daemon", "waiting", level=logging.DEBUG)
        if not self.watcher.alive:
            raise WakeChannelError("Token file observer thread is not running")
        if self._removal_wait is None:
            self._removal_wait = asyncio.ensure_future(self.watcher.next_event())
        expired = self.timer.wake
        done, _ = await asyncio.wait(
            {expired, self._removal_wait}, return_when=asyncio.FIRST_COMPLETED
        )
        if self._removal_wait in done:
            removal, self._removal_wait = self._removal_wait, None
            event: WakeEvent = removal.result()
        else:
            event = expired.result()
        logger.log_event("daemon", "wake", source=_describe(event))
        return event

    async def refresh(self, reason: str = "manual") -> Token:
        """Run one refresh cycle and return the new active token.

        The expiry is decoded before anything is written, so a token with a
        malformed claim never reaches the token file.
        """
        if self._refreshing:
            raise RuntimeError("A refresh cycle is already running")
        self._refreshing = True
        self._phase = LoopPhase.REFRESHING
        try:
            logger.log_event("refresh", "start", reason=reason)
            raw = await retry_transport(self.client.login, self.login_attempts)
            token = Token(raw)
            expiry = self.decoder.expiry(token)
            self.store.persist(token)
            self.timer.arm(None if expiry is None else self._fire_at(expiry))
            self._state = Active(token)
            self._refresh_count += 1
            logger.log_event(
                "refresh",
                "complete",
                fingerprint=token.fingerprint,
                expiry="never" if expiry is None else expiry.isoformat(),
            )
            return token
        finally:
            self._refreshing = False

    def _fire_at(self, expiry: datetime) -> datetime:
        try:
            fire_at = expiry - self.refresh_margin
        except OverflowError:
            return expiry
        # A margin as long as the token lifetime would never arm the timer
        if fire_at <= self.timer.now() < expiry:
            logger.log_event(
                "refresh",
                "margin_clamped",
                level=logging.WARNING,
                margin=self.refresh_margin.total_seconds(),
                expiry=expiry.isoformat(),
            )
            return expiry
        return fire_at

    async def close(self) -> None:
        """Release the watcher, the pending wait and the timer."""
        wait, self._removal_wait = self._removal_wait, None
        if wait is not None:
            wait.cancel()
            with contextlib.suppress(asyncio.CancelledError, WakeChannelError):
                await wait
        self.timer.disarm()
        self.watcher.stop()
        logger.log_event("daemon", "closed", level=logging.DEBUG)


def _describe(event: WakeEvent) -> str:
    if isinstance(event, ExpirationFired):
        return "token expiration"
    return f"removal of {event.path}"


__all__ = ["RefreshLoop"]
