from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from soundpad_remote.config.schema import ClientOptions
from soundpad_remote.errors import SoundpadError


class ConfigError(SoundpadError):
    """Raised when config loading or validation fails."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


def load_options(path: Path, **overrides: Any) -> ClientOptions:
    """Load client options from a YAML file.

    The file may hold the options at top level or under a ``soundpad:`` key.
    Keyword ``overrides`` win over values read from the file. An empty file
    yields the defaults.
    """
    try:
        raw = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(path, f"Cannot read file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(path, f"Invalid YAML: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(path, "Expected a YAML mapping at top level")
    if "soundpad" in raw:
        raw = raw["soundpad"] or {}
        if not isinstance(raw, dict):
            raise ConfigError(path, "Expected a mapping under 'soundpad'")

    try:
        return ClientOptions.model_validate({**raw, **overrides})
    except ValidationError as e:
        raise ConfigError(path, f"Validation error: {e}") from e
