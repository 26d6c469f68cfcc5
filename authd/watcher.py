"""
Token file watcher surfacing file removal as wake events
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .constants import WATCH_JOIN_TIMEOUT_SECONDS
from .errors import WakeChannelError, WatchSetupError
from .logs.logger import logger
from .models import TokenFileRemoved

_CLOSED = object()


class TokenFileHandler(FileSystemEventHandler):
    """File system event handler forwarding removals of the token file"""

    def __init__(self, token_path: Path, watcher: FileWatcher):
        super().__init__()
        self.token_path = os.path.abspath(token_path)
        self.watcher = watcher

    def _is_token_file(self, event: FileSystemEvent) -> bool:
        return not event.is_directory and (
            os.path.abspath(os.fsdecode(event.src_path)) == self.token_path
        )

    def _ignore(self, event: FileSystemEvent) -> None:
        if self._is_token_file(event):
            logger.log_event(
                "watch",
                "ignored",
                level=logging.DEBUG,
                kind=event.event_type,
                path=self.token_path,
            )

    # Runs on the observer thread
    def on_deleted(self, event):
        if self._is_token_file(event):
            self.watcher._deliver(TokenFileRemoved(Path(self.token_path)))  # noqa: SLF001

    def on_modified(self, event):
        self._ignore(event)

    def on_created(self, event):
        self._ignore(event)

    def on_moved(self, event):
        self._ignore(event)


class FileWatcher:
    """Watches the token file's directory and reports removals of the file.

    The watchdog observer runs on its own thread and hands events to the
    event loop through ``call_soon_threadsafe``; the refresh loop consumes them
    with ``next_event``. The observer only lives as long as this object is
    started, so the owner must keep the handle for the whole daemon run.
    """

    observer: Any | None

    def __init__(
        self,
        path: str | os.PathLike[str],
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        self.path = Path(path).absolute()
        self._observer_factory = observer_factory
        self.observer = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def alive(self) -> bool:
        obs = self.observer
        return obs is not None and obs.is_alive()

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> FileWatcher:
        """Start observing the token file's parent directory.

        Raises:
            WatchSetupError: If the directory is missing or cannot be observed.
        """
        if self.observer is not None:
            return self
        watch_dir = self.path.parent
        if not watch_dir.is_dir():
            raise WatchSetupError(
                f"Cannot watch {self.path}: directory {watch_dir} does not exist",
                data={"path": str(watch_dir)},
            )
        self._loop = loop or asyncio.get_running_loop()
        observer = self._observer_factory()
        try:
            observer.schedule(
                TokenFileHandler(self.path, self), str(watch_dir), recursive=False
            )
            observer.start()
        except Exception as e:
            raise WatchSetupError(
                f"Cannot watch {watch_dir}: {e}", data={"path": str(watch_dir)}
            ) from e
        self.observer = observer
        logger.log_event("watch", "start", path=str(self.path))
        return self

    async def next_event(self) -> TokenFileRemoved:
        """Wait for the next removal of the token file.

        Raises:
            WakeChannelError: If the watcher was stopped or its thread died.
        """
        if self._closed:
            raise WakeChannelError("Token file watcher is stopped")
        if self.observer is None:
            raise WakeChannelError("Token file watcher was never started")
        if not self.alive:
            raise WakeChannelError("Token file observer thread is not running")
        item = await self._queue.get()
        if item is _CLOSED:
            raise WakeChannelError("Token file watcher is stopped")
        return item  # type: ignore[return-value]

    def stop(self) -> None:
        """Stop the observer thread and close the wake channel"""
        obs = self.observer
        if obs is not None:
            try:
                obs.stop()
                obs.join(WATCH_JOIN_TIMEOUT_SECONDS)
            finally:
                self.observer = None
                logger.log_event("watch", "stopped", level=logging.DEBUG)
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def _deliver(self, event: TokenFileRemoved) -> None:
        logger.log_event("watch", "removed", path=str(event.path))
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError as e:
            # Event loop already closed; nobody is left to wake.
            logger.log_event(
                "watch",
                "delivery_failed",
                level=logging.ERROR,
                path=str(event.path),
                error=str(e),
            )


__all__ = ["FileWatcher", "TokenFileHandler"]
