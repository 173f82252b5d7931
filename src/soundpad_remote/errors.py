"""Exception types raised by the Soundpad client."""

from __future__ import annotations


class SoundpadError(Exception):
    """Base class for every error raised by this package."""


class UnsupportedPlatformError(SoundpadError, OSError):
    """An operation needing Windows facilities was invoked on another OS."""


class NotConnectedError(SoundpadError, ConnectionError):
    pass


class ChannelClosedError(SoundpadError, ConnectionError):
    """The control channel closed while a command was awaiting its reply."""


class TargetNotFoundError(SoundpadError):
    """The Soundpad executable could not be located for an automatic launch."""


class CommandError(SoundpadError):
    """Soundpad answered a command with a failure status line."""

    def __init__(self, command: str, response: str) -> None:
        self.command = command
        self.response = response
        super().__init__(f"{command} failed: {response}")


class MarkupError(SoundpadError, ValueError):
    """A listing reply was not well-formed XML."""
