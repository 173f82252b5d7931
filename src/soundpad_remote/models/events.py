from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SessionEventType(StrEnum):
    CONNECTED = "connected"
    CLOSE = "close"
    ERROR = "error"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True)
class SessionEvent:
    """A lifecycle notification emitted by a Session."""

    event_type: SessionEventType
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
