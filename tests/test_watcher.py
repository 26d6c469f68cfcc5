import asyncio
import os

import pytest

from authd.errors import WakeChannelError, WatchSetupError
from authd.models import TokenFileRemoved
from authd.watcher import FileWatcher, TokenFileHandler


class DummyEvent:
    def __init__(self, event_type, src_path, is_directory=False):
        self.event_type = event_type
        self.src_path = src_path
        self.is_directory = is_directory


class RecordingWatcher:
    def __init__(self):
        self.delivered = []

    def _deliver(self, event):  # noqa: D401
        self.delivered.append(event)


class BrokenObserver:
    def schedule(self, handler, path, recursive=False):
        pass

    def start(self):
        raise OSError("inotify watch limit reached")


def test_handler_forwards_only_token_removal(tmp_path):
    token = tmp_path / "token"
    recorder = RecordingWatcher()
    handler = TokenFileHandler(token, recorder)

    handler.on_modified(DummyEvent("modified", str(token)))
    handler.on_created(DummyEvent("created", str(token)))
    handler.on_moved(DummyEvent("moved", str(token)))
    handler.on_deleted(DummyEvent("deleted", str(tmp_path / "other")))
    handler.on_deleted(DummyEvent("deleted", str(token), is_directory=True))
    assert recorder.delivered == []

    handler.on_deleted(DummyEvent("deleted", str(token)))
    assert recorder.delivered == [TokenFileRemoved(token.absolute())]


def test_handler_accepts_bytes_paths(tmp_path):
    token = tmp_path / "token"
    recorder = RecordingWatcher()
    TokenFileHandler(token, recorder).on_deleted(
        DummyEvent("deleted", os.fsencode(str(token)))
    )
    assert len(recorder.delivered) == 1


@pytest.mark.asyncio
async def test_missing_directory_fails(tmp_path):
    watcher = FileWatcher(tmp_path / "nope" / "token")
    with pytest.raises(WatchSetupError):
        watcher.start()


@pytest.mark.asyncio
async def test_observer_start_failure(tmp_path):
    watcher = FileWatcher(tmp_path / "token", observer_factory=BrokenObserver)
    with pytest.raises(WatchSetupError, match="inotify"):
        watcher.start()
    assert watcher.observer is None


@pytest.mark.asyncio
async def test_next_event_before_start(tmp_path):
    with pytest.raises(WakeChannelError):
        await FileWatcher(tmp_path / "token").next_event()


@pytest.mark.asyncio
async def test_removal_is_delivered(token_path):
    token_path.write_text("t1")
    watcher = FileWatcher(token_path).start()
    try:
        assert watcher.alive
        token_path.unlink()
        event = await asyncio.wait_for(watcher.next_event(), 5)
        assert event == TokenFileRemoved(token_path.absolute())
    finally:
        watcher.stop()


@pytest.mark.asyncio
async def test_modifications_are_not_delivered(token_path):
    token_path.write_text("t1")
    watcher = FileWatcher(token_path).start()
    try:
        token_path.write_text("t2")
        (token_path.parent / "neighbour").write_text("x")
        (token_path.parent / "neighbour").unlink()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(watcher.next_event(), 0.5)
    finally:
        watcher.stop()


@pytest.mark.asyncio
async def test_removal_after_recreate(token_path):
    token_path.write_text("t1")
    watcher = FileWatcher(token_path).start()
    try:
        token_path.unlink()
        await asyncio.wait_for(watcher.next_event(), 5)
        token_path.write_text("t2")
        token_path.unlink()
        event = await asyncio.wait_for(watcher.next_event(), 5)
        assert event.path == token_path.absolute()
    finally:
        watcher.stop()


@pytest.mark.asyncio
async def test_stop_closes_channel(token_path):
    watcher = FileWatcher(token_path).start()
    waiter = asyncio.ensure_future(watcher.next_event())
    await asyncio.sleep(0)
    watcher.stop()
    assert not watcher.alive
    with pytest.raises(WakeChannelError):
        await asyncio.wait_for(waiter, 2)
    with pytest.raises(WakeChannelError):
        await watcher.next_event()


@pytest.mark.asyncio
async def test_start_twice_keeps_observer(token_path):
    watcher = FileWatcher(token_path).start()
    try:
        observer = watcher.observer
        assert watcher.start().observer is observer
    finally:
        watcher.stop()
