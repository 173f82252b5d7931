from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Callable

import pytest

from soundpad_remote.config.schema import ClientOptions
from soundpad_remote.engine.session import Session

Reply = str | Callable[[str], str]


class FakeChannel:
    """Stands in for an open pipe; replies are injected by the test."""

    def __init__(self, address: str, listener, idle_timeout: float | None) -> None:
        self.address = address
        self.listener = listener
        self.idle_timeout = idle_timeout
        self.written: list[bytes] = []
        self.closed = False

    @property
    def is_closing(self) -> bool:
        return self.closed

    def write(self, data: bytes) -> None:
        self.written.append(data)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            asyncio.get_running_loop().call_soon(self.listener.channel_closed, None)

    def reply(self, text: str) -> None:
        self.listener.channel_data(text.encode("utf-8"))

    def drop(self, exc: Exception | None = None) -> None:
        """Simulate Soundpad going away."""
        self.closed = True
        self.listener.channel_closed(exc)


class FakeOpener:
    """Channel opener that hands out FakeChannels, optionally gated or failing."""

    def __init__(self) -> None:
        self.channels: list[FakeChannel] = []
        self.failures: list[Exception] = []
        self.gate: asyncio.Event | None = None
        self.calls = 0

    async def __call__(self, address: str, listener, *, idle_timeout: float | None = None) -> FakeChannel:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            raise self.failures.pop(0)
        channel = FakeChannel(address, listener, idle_timeout)
        self.channels.append(channel)
        return channel

    @property
    def current(self) -> FakeChannel:
        return self.channels[-1]


class ScriptedDriver:
    """Data driver answering commands from a script, recording what was sent."""

    def __init__(self, replies: dict[str, Reply] | None = None, default: str = "R-200") -> None:
        self.replies = dict(replies or {})
        self.queue: list[str] = []
        self.default = default
        self.commands: list[str] = []

    async def __call__(self, command: str) -> str:
        self.commands.append(command)
        if self.queue:
            return self.queue.pop(0)
        reply = self.replies.get(command, self.default)
        return reply(command) if callable(reply) else reply


class FakeSoundpadServer:
    """Unix-socket server speaking Soundpad's reply-per-command protocol."""

    def __init__(self, path: Path, replies: dict[str, Reply] | None = None, default: str = "R-200") -> None:
        self.path = path
        self.replies = dict(replies or {})
        self.default = default
        self.commands: list[str] = []
        self.connections = 0
        self._writers: list[asyncio.StreamWriter] = []
        self._server: asyncio.AbstractServer | None = None

    async def start(self) -> None:
        self._server = await asyncio.start_unix_server(self._handle, path=str(self.path))

    async def stop(self) -> None:
        if self._server is None:
            return
        # Stop accepting first so a reconnecting client cannot slip in.
        self._server.close()
        await asyncio.sleep(0)
        await self.drop_clients()
        await self._server.wait_closed()
        self._server = None

    async def drop_clients(self) -> None:
        writers, self._writers = self._writers, []
        for writer in writers:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        self._writers.append(writer)
        try:
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                command = data.decode("utf-8")
                self.commands.append(command)
                reply = self.replies.get(command, self.default)
                writer.write((reply(command) if callable(reply) else reply).encode("utf-8"))
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()


@pytest.fixture
def fake_opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture
def driver() -> ScriptedDriver:
    return ScriptedDriver()


@pytest.fixture
def make_session(fake_opener: FakeOpener) -> Callable[..., Session]:
    def _make(**option_overrides) -> Session:
        options = ClientOptions(pipe_name="fake-pipe", reconnect_delay=0.01, **option_overrides)
        return Session(options, opener=fake_opener)

    return _make


@pytest.fixture
async def server(socket_dir: Path, fixtures_dir: Path):
    fake = FakeSoundpadServer(
        socket_dir / "sp.sock",
        replies={
            "GetVolume()": "80",
            "GetPlayStatus()": "PLAYING",
            "GetRemoteControlVersion()": "1.1.2",
            "GetSoundlist()": (fixtures_dir / "soundlist.xml").read_text(),
            "GetCategories(false, false)": (fixtures_dir / "categories.xml").read_text(),
            "DoPlaySound(99)": "R-404",
        },
    )
    await fake.start()
    yield fake
    await fake.stop()


@pytest.fixture
def socket_dir():
    # Unix socket paths are length-limited, pytest's tmp_path can be too long.
    path = Path(tempfile.mkdtemp(prefix="sp-"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"
