"""Transport channel: one duplex byte stream to the Soundpad control pipe."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Awaitable, Callable

import structlog

if TYPE_CHECKING:
    from soundpad_remote.plugins.protocols import ChannelListener

log = structlog.get_logger()


class _ChannelProtocol(asyncio.Protocol):
    """Forwards asyncio transport callbacks to a ChannelListener."""

    def __init__(self, listener: ChannelListener, idle_timeout: float | None) -> None:
        self._listener = listener
        self._idle_timeout = idle_timeout
        self._timer: asyncio.TimerHandle | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.touch()

    def data_received(self, data: bytes) -> None:
        self.touch()
        self._listener.channel_data(data)

    def eof_received(self) -> bool:
        self._listener.channel_end()
        # Let the transport close itself so connection_lost follows.
        return False

    def connection_lost(self, exc: Exception | None) -> None:
        self._cancel_timer()
        self._listener.channel_closed(exc)

    def touch(self) -> None:
        """Restart the inactivity timer."""
        self._cancel_timer()
        if self._idle_timeout is not None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self._idle_timeout, self._on_timeout)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self) -> None:
        self._timer = None
        self._listener.channel_timeout()


class Channel:
    """An open connection to the control pipe. Owned by exactly one Session."""

    def __init__(self, address: str, transport: asyncio.Transport, protocol: _ChannelProtocol) -> None:
        self.address = address
        self._transport = transport
        self._protocol = protocol

    @property
    def is_closing(self) -> bool:
        return self._transport.is_closing()

    def write(self, data: bytes) -> None:
        self._transport.write(data)
        self._protocol.touch()

    def close(self) -> None:
        if not self._transport.is_closing():
            self._transport.close()


ChannelOpener = Callable[..., Awaitable[Channel]]


async def open_channel(
    address: str,
    listener: ChannelListener,
    *,
    idle_timeout: float | None = None,
) -> Channel:
    """Connect to the control pipe as a client.

    On Windows ``address`` is a named pipe path; elsewhere it is taken as a
    Unix-domain socket path, which is how relays and tests expose the protocol.
    Raises ``OSError`` when nothing is listening.
    """
    loop = asyncio.get_running_loop()

    def factory() -> _ChannelProtocol:
        return _ChannelProtocol(listener, idle_timeout)

    if sys.platform == "win32":
        transport, protocol = await loop.create_pipe_connection(factory, address)
    else:
        transport, protocol = await loop.create_unix_connection(factory, address)
    log.debug("channel opened", address=address)
    return Channel(address, transport, protocol)
