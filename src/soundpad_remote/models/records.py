"""Pydantic models for the sound and category listings Soundpad returns."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlayStatus(StrEnum):
    STOPPED = "STOPPED"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    SEEKING = "SEEKING"


def _as_text(value: Any) -> Any:
    # The markup decoder turns all-digit attribute text into numbers.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


class Sound(BaseModel):
    """One entry of the Soundpad sound list. Snapshot, re-fetched on every query."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: int
    url: str = ""
    artist: str = ""
    title: str = ""
    duration: str = ""
    added_on: str = Field(default="", alias="addedOn")
    last_played_on: str = Field(default="", alias="lastPlayedOn")
    play_count: int = Field(default=0, alias="playCount")
    color: str | None = None
    tag: str | None = None

    @field_validator(
        "url",
        "artist",
        "title",
        "duration",
        "added_on",
        "last_played_on",
        "color",
        "tag",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class Category(BaseModel):
    """A node of the category tree."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: int
    type: int | None = None
    name: str = ""
    hidden: bool | None = None
    icon: str | None = None
    sounds: list[Sound] | None = None
    sub_categories: list[Category] = Field(default_factory=list, alias="subCategories")

    @field_validator("name", "icon", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)

    def walk(self):
        """Yield this category and every descendant, depth first."""
        yield self
        for child in self.sub_categories:
            yield from child.walk()
