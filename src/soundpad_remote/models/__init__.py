from soundpad_remote.models.events import ConnectionState, SessionEvent, SessionEventType
from soundpad_remote.models.records import Category, PlayStatus, Sound
from soundpad_remote.models.requests import AddSoundOptions, PlayOptions, SoundlistRange

__all__ = [
    "AddSoundOptions",
    "Category",
    "ConnectionState",
    "PlayOptions",
    "PlayStatus",
    "SessionEvent",
    "SessionEventType",
    "Sound",
    "SoundlistRange",
]
