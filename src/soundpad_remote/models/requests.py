"""Optional arguments for commands that Soundpad accepts in several arities."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PlayOptions:
    """Output lines for ``DoPlaySound``.

    ``render_line`` plays on the speakers, ``capture_line`` on the microphone.
    """

    render_line: bool = True
    capture_line: bool = True


@dataclass(frozen=True)
class AddSoundOptions:
    """Placement for ``DoAddSound``.

    With only ``index`` set, the sound is inserted at that position of the
    default category. With ``insert_at_position`` as well, ``index`` names the
    category and ``insert_at_position`` the position inside it.
    """

    index: int | None = None
    insert_at_position: int | None = None

    def __post_init__(self) -> None:
        if self.insert_at_position is not None and self.index is None:
            raise ValueError("'insert_at_position' requires 'index'")


@dataclass(frozen=True)
class SoundlistRange:
    """Section of the sound list. Indexes start at 1, ``to_index`` is inclusive."""

    from_index: int
    to_index: int | None = None

    def __post_init__(self) -> None:
        if self.from_index < 1:
            raise ValueError("'from_index' starts at 1")
        if self.to_index is not None and self.to_index < self.from_index:
            raise ValueError("'to_index' must not be lower than 'from_index'")
