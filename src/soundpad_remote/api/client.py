"""SoundpadClient: typed commands on top of a Session.

Ordinary command failures are not raised: boolean commands return ``False``,
numeric getters ``None``, and a warning is logged with the raw reply. Only the
typed listing getters ``fetch_sounds`` and ``fetch_categories`` raise
``CommandError`` when Soundpad answers with a status line.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import structlog

from soundpad_remote.api.commands import (
    format_command,
    is_status_line,
    is_success,
    parse_int,
)
from soundpad_remote.api.decoders import (
    MarkupDecoder,
    decode_categories,
    decode_category,
    decode_sound_list,
    parse_markup,
)
from soundpad_remote.engine.session import EventCallback, Session
from soundpad_remote.errors import CommandError
from soundpad_remote.models.events import ConnectionState, SessionEventType
from soundpad_remote.models.records import Category, PlayStatus, Sound
from soundpad_remote.models.requests import AddSoundOptions, PlayOptions, SoundlistRange
from soundpad_remote.plugins.protocols import DataDriver

log = structlog.get_logger()


class SoundpadClient:
    """High-level Soundpad remote control.

    Commands are sent one at a time over the session; concurrent calls queue
    behind each other.
    """

    def __init__(self, session: Session | None = None, decode: MarkupDecoder = parse_markup) -> None:
        self.session = session or Session()
        self._decode = decode
        self.remote_control_version: str | None = None

    # --- session passthrough -------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self.session.state

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected

    async def connect(self, data_driver: DataDriver | None = None) -> None:
        await self.session.connect(data_driver)

    async def disconnect(self) -> None:
        await self.session.disconnect()

    async def send_query(self, command: str) -> str:
        return await self.session.send_query(command)

    def on(self, event_type: SessionEventType | str, callback: EventCallback) -> Callable[[], None]:
        return self.session.on(event_type, callback)

    def off(self, event_type: SessionEventType | str, callback: EventCallback) -> None:
        self.session.off(event_type, callback)

    async def __aenter__(self) -> SoundpadClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # --- reply handling ------------------------------------------------

    async def _command(self, verb: str, *args: Any) -> bool:
        command = format_command(verb, *args)
        response = await self.send_query(command)
        if is_success(response):
            return True
        log.warning("command failed", command=command, response=response)
        return False

    async def _integer(self, verb: str) -> int | None:
        command = format_command(verb)
        response = await self.send_query(command)
        value = parse_int(response)
        if value is None:
            log.warning("non-numeric reply", command=command, response=response)
        return value

    async def _text(self, verb: str) -> str:
        return await self.send_query(format_command(verb))

    async def _listing(self, command: str) -> str:
        response = await self.send_query(command)
        if is_status_line(response):
            log.warning("listing request failed", command=command, response=response)
        return response

    # --- playback ------------------------------------------------------

    async def play_sound(self, index: int, options: PlayOptions | None = None) -> bool:
        """Play a sound by its index in the sound list.

        Without ``options`` Soundpad uses its default output lines.
        """
        if options is None:
            return await self._command("DoPlaySound", index)
        return await self._command("DoPlaySound", index, options.render_line, options.capture_line)

    async def play_sound_from_category(
        self,
        category_index: int,
        sound_index: int,
        render_line: bool = True,
        capture_line: bool = True,
    ) -> bool:
        """Play the ``sound_index``-th sound (1-based position) of a category.

        Pass ``-1`` as ``category_index`` for the currently selected category.
        """
        return await self._command(
            "DoPlaySoundFromCategory", category_index, sound_index, render_line, capture_line
        )

    async def play_previous_sound(self) -> bool:
        """Play the previous sound in the list, on the same lines as the last one."""
        return await self._command("DoPlayPreviousSound")

    async def play_next_sound(self) -> bool:
        return await self._command("DoPlayNextSound")

    async def play_selected_sound(self) -> bool:
        return await self._command("DoPlaySelectedSound")

    async def play_current_sound_again(self) -> bool:
        return await self._command("DoPlayCurrentSoundAgain")

    async def play_previously_played_sound(self) -> bool:
        return await self._command("DoPlayPreviouslyPlayedSound")

    async def stop_sound(self) -> bool:
        return await self._command("DoStopSound")

    async def toggle_pause(self) -> bool:
        return await self._command("DoTogglePause")

    async def jump(self, time_ms: int) -> bool:
        """Jump relative to the current position. Negative values jump backwards."""
        return await self._command("DoJumpMs", time_ms)

    async def seek(self, time_ms: int) -> bool:
        """Jump to an absolute position in the current sound."""
        return await self._command("DoSeekMs", time_ms)

    async def get_play_status(self) -> PlayStatus:
        response = await self._text("GetPlayStatus")
        try:
            return PlayStatus(response.strip())
        except ValueError:
            log.warning("unexpected play status", response=response)
            return PlayStatus.STOPPED

    async def wait_for_status(
        self,
        status: PlayStatus = PlayStatus.STOPPED,
        poll_interval: float | None = None,
    ) -> None:
        """Poll the play status until it equals ``status``.

        There is no built-in timeout; wrap the call in ``asyncio.wait_for``
        when the wait has to be bounded.
        """
        interval = poll_interval or self.session.options.status_poll_interval
        while True:
            await asyncio.sleep(interval)
            if await self.get_play_status() == status:
                return

    async def get_playback_position(self) -> int | None:
        """Position of the current sound in milliseconds."""
        return await self._integer("GetPlaybackPositionInMs")

    async def get_playback_duration(self) -> int | None:
        """Duration of the current sound in milliseconds."""
        return await self._integer("GetPlaybackDurationInMs")

    # --- recording -----------------------------------------------------

    async def start_recording(self) -> bool:
        """Start recording as the hotkey would, notification sound included."""
        return await self._command("DoStartRecording")

    async def start_recording_speakers(self) -> bool:
        """Record the speakers. Fails while the microphone is being recorded."""
        return await self._command("DoStartRecordingSpeakers")

    async def start_recording_microphone(self) -> bool:
        """Record the microphone. Fails while the speakers are being recorded."""
        return await self._command("DoStartRecordingMicrophone")

    async def stop_recording(self) -> bool:
        return await self._command("DoStopRecording")

    async def get_recording_position(self) -> int | None:
        return await self._integer("GetRecordingPositionInMs")

    async def get_recording_peak(self) -> int | None:
        return await self._integer("GetRecordingPeak")

    # --- search and selection ------------------------------------------

    async def search(self, search_term: str) -> bool:
        """Highlight sounds through Soundpad's instant search."""
        return await self._command("DoSearch", search_term)

    async def reset_search(self) -> bool:
        return await self._command("DoResetSearch")

    async def select_previous_hit(self) -> bool:
        """Select the previous search hit. Search wraps around at both ends."""
        return await self._command("DoSelectPreviousHit")

    async def select_next_hit(self) -> bool:
        return await self._command("DoSelectNextHit")

    async def select_row(self, row: int) -> bool:
        """Select a row of the currently shown category (not a sound index)."""
        return await self._command("DoSelectIndex", row)

    async def scroll_by(self, rows: int) -> bool:
        return await self._command("DoScrollBy", rows)

    async def scroll_to(self, row: int) -> bool:
        return await self._command("DoScrollTo", row)

    # --- sound list ----------------------------------------------------

    async def get_sound_file_count(self) -> int | None:
        """Number of sounds over all categories."""
        return await self._integer("GetSoundFileCount")

    async def get_soundlist(self, section: SoundlistRange | None = None) -> str:
        """Raw XML of the sound list, or of a section of it."""
        if section is None:
            command = format_command("GetSoundlist")
        elif section.to_index is None:
            command = format_command("GetSoundlist", section.from_index)
        else:
            command = format_command(
                "GetSoundlist", section.from_index, section.to_index, separator=","
            )
        return await self.send_query(command)

    async def fetch_sounds(self, section: SoundlistRange | None = None) -> list[Sound]:
        """The sound list as records, in list order."""
        response = await self.get_soundlist(section)
        if is_status_line(response):
            log.warning("sound list request failed", response=response)
            raise CommandError("GetSoundlist", response)
        return decode_sound_list(response, self._decode)

    async def add_sound(self, url: str, options: AddSoundOptions | None = None) -> bool:
        """Add a file (full path, e.g. ``C:\\sounds\\horn.mp3``) to the sound list."""
        if options is None or options.index is None:
            return await self._command("DoAddSound", url)
        if options.insert_at_position is None:
            return await self._command("DoAddSound", url, options.index)
        return await self._command("DoAddSound", url, options.index, options.insert_at_position)

    async def remove_selected_entries(self, remove_on_disk_too: bool = False) -> bool:
        return await self._command("DoRemoveSelectedEntries", remove_on_disk_too)

    async def undo(self) -> bool:
        return await self._command("DoUndo")

    async def redo(self) -> bool:
        return await self._command("DoRedo")

    async def save_soundlist(self) -> bool:
        """Save the sound list. Soundpad shows a file dialog if it was never saved."""
        return await self._command("DoSaveSoundlist")

    # --- categories ----------------------------------------------------

    async def get_categories(self, with_sounds: bool = False, with_icons: bool = False) -> str:
        """Raw XML of the category tree. Icons are base64-encoded PNGs."""
        return await self._listing(format_command("GetCategories", with_sounds, with_icons))

    async def get_category(
        self, category_index: int, with_sounds: bool = False, with_icons: bool = False
    ) -> str:
        return await self._listing(
            format_command("GetCategory", category_index, with_sounds, with_icons)
        )

    async def fetch_categories(
        self, with_sounds: bool = False, with_icons: bool = False
    ) -> list[Category]:
        """The category tree as records, with sub-categories nested."""
        command = format_command("GetCategories", with_sounds, with_icons)
        response = await self.send_query(command)
        if is_status_line(response):
            log.warning("category request failed", command=command, response=response)
            raise CommandError(command, response)
        return decode_categories(response, with_sounds, self._decode)

    async def fetch_category(
        self, category_index: int, with_sounds: bool = False, with_icons: bool = False
    ) -> Category | None:
        response = await self.get_category(category_index, with_sounds, with_icons)
        if is_status_line(response):
            return None
        return decode_category(response, with_sounds, self._decode)

    async def add_category(self, name: str, parent_category_index: int = -1) -> bool:
        return await self._command("DoAddCategory", name, parent_category_index)

    async def select_category(self, category_index: int) -> bool:
        return await self._command("DoSelectCategory", category_index)

    async def select_previous_category(self) -> bool:
        return await self._command("DoSelectPreviousCategory")

    async def select_next_category(self) -> bool:
        return await self._command("DoSelectNextCategory")

    async def remove_category(self, category_index: int) -> bool:
        return await self._command("DoRemoveCategory", category_index)

    # --- volume --------------------------------------------------------

    async def get_volume(self) -> int | None:
        """Speaker volume between 0 and 100."""
        return await self._integer("GetVolume")

    async def set_volume(self, volume: int) -> bool:
        return await self._command("SetVolume", volume)

    async def is_muted(self) -> bool:
        """True if the speakers are muted or at volume 0."""
        return await self._integer("IsMuted") == 1

    async def toggle_mute(self) -> bool:
        return await self._command("DoToggleMute")

    # --- application info ----------------------------------------------

    async def get_main_frame_title_text(self) -> str:
        return await self._text("GetTitleText")

    async def get_status_bar_text(self) -> str:
        return await self._text("GetStatusBarText")

    async def get_version(self) -> str:
        """Version of Soundpad itself, not of its remote control interface."""
        return await self._text("GetVersion")

    async def get_remote_control_version(self) -> str:
        return await self._text("GetRemoteControlVersion")

    async def is_compatible(self) -> bool:
        """True when Soundpad speaks the remote control version this client targets."""
        self.remote_control_version = (await self.get_remote_control_version()).strip()
        return self.remote_control_version == self.session.options.client_version

    async def is_alive(self) -> bool:
        """True when Soundpad runs and its remote control interface answers."""
        return await self._command("IsAlive")

