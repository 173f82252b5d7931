"""Async client for the Soundpad remote control pipe."""

from __future__ import annotations

from soundpad_remote.api.client import SoundpadClient
from soundpad_remote.config.loader import ConfigError, load_options
from soundpad_remote.config.schema import ClientOptions
from soundpad_remote.engine.launcher import NullLauncher, ProcessLauncher
from soundpad_remote.engine.session import Session
from soundpad_remote.errors import (
    ChannelClosedError,
    CommandError,
    MarkupError,
    NotConnectedError,
    SoundpadError,
    TargetNotFoundError,
    UnsupportedPlatformError,
)
from soundpad_remote.models import (
    AddSoundOptions,
    Category,
    ConnectionState,
    PlayOptions,
    PlayStatus,
    SessionEvent,
    SessionEventType,
    Sound,
    SoundlistRange,
)
from soundpad_remote.plugins.protocols import DataDriver


def create_client(
    options: ClientOptions | None = None,
    *,
    data_driver: DataDriver | None = None,
    manage_process: bool = False,
) -> SoundpadClient:
    """Build an independent client with its own session.

    ``manage_process`` installs a launch hook that finds and starts Soundpad
    when ``options.start_on_connect`` is set; it needs Windows.
    """
    options = options or ClientOptions()
    launcher = ProcessLauncher(options) if manage_process else NullLauncher()
    session = Session(options, data_driver=data_driver, launcher=launcher)
    return SoundpadClient(session)


__all__ = [
    "AddSoundOptions",
    "Category",
    "ChannelClosedError",
    "ClientOptions",
    "CommandError",
    "ConfigError",
    "ConnectionState",
    "DataDriver",
    "MarkupError",
    "NotConnectedError",
    "PlayOptions",
    "PlayStatus",
    "ProcessLauncher",
    "Session",
    "SessionEvent",
    "SessionEventType",
    "Sound",
    "SoundlistRange",
    "SoundpadClient",
    "SoundpadError",
    "TargetNotFoundError",
    "UnsupportedPlatformError",
    "create_client",
    "load_options",
]
