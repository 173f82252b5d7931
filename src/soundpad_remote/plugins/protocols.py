"""Strategy contracts a Session can be configured with.

Implementations need no base class; any object matching the protocol works::

    async def relay(command: str) -> str:
        return await websocket_bridge.ask(command)

    client = create_client(data_driver=relay)
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable

DataDriver = Callable[[str], Awaitable[str]]
"""Sends one command string and returns the raw reply text.

Installing a data driver replaces the named-pipe transport entirely, e.g. when
commands are relayed through a host process that owns the real pipe.
"""


@runtime_checkable
class LaunchHook(Protocol):
    """Brings Soundpad up before the Session opens its channel."""

    async def launch(self) -> None:
        """Start the target application and return once its pipe accepts connections."""
        ...


@runtime_checkable
class ChannelListener(Protocol):
    """Receives lifecycle and data events from a transport channel."""

    def channel_data(self, data: bytes) -> None: ...

    def channel_end(self) -> None: ...

    def channel_timeout(self) -> None: ...

    def channel_closed(self, exc: Exception | None) -> None: ...
