from __future__ import annotations

from pydantic import BaseModel, field_validator

DEFAULT_PIPE_NAME = r"\\.\pipe\sp_remote_control"
DEFAULT_REGISTRY_KEY = r"HKEY_CLASSES_ROOT\Soundpad\shell\open\command"


class ClientOptions(BaseModel):
    """Connection and process-management settings for a Soundpad client. All optional."""

    pipe_name: str = DEFAULT_PIPE_NAME
    auto_reconnect: bool = False
    start_on_connect: bool = False
    reconnect_delay: float = 1.0
    ready_poll_interval: float = 0.1
    status_poll_interval: float = 0.1
    idle_timeout: float | None = None
    executable_name: str = "Soundpad.exe"
    registry_key: str = DEFAULT_REGISTRY_KEY
    client_version: str = "1.1.2"

    @field_validator("reconnect_delay", "ready_poll_interval", "status_poll_interval")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("intervals must be positive")
        return v

    @field_validator("idle_timeout")
    @classmethod
    def validate_idle_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("'idle_timeout' must be positive when set")
        return v

    @field_validator("pipe_name", "executable_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v
