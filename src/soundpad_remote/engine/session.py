"""Session: owns the control channel and pairs each command with its reply.

Soundpad's protocol carries no request identifiers: the reply to a command is
simply the next chunk of data that arrives on the pipe. The Session therefore
keeps at most one request in flight and resolves it with the very next data
event. If Soundpad ever sent unsolicited data the pairing would break; such
data is logged and dropped when no request is pending.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from soundpad_remote.config.schema import ClientOptions
from soundpad_remote.engine.launcher import NullLauncher
from soundpad_remote.engine.transport import Channel, ChannelOpener, open_channel
from soundpad_remote.errors import ChannelClosedError, NotConnectedError
from soundpad_remote.models.events import ConnectionState, SessionEvent, SessionEventType
from soundpad_remote.plugins.protocols import DataDriver, LaunchHook

log = structlog.get_logger()

EventCallback = Callable[[SessionEvent], Any]


@dataclass
class PendingRequest:
    """A sent command waiting for the next data event."""

    command: str
    future: asyncio.Future[str] = field(repr=False)


class _ChannelEvents:
    """Listener for one channel. Forwards its events only while it is the Session's current channel."""

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def is_current(self) -> bool:
        return self._session._events is self

    def channel_data(self, data: bytes) -> None:
        if self.is_current:
            self._session.channel_data(data)

    def channel_end(self) -> None:
        if self.is_current:
            self._session.channel_end()

    def channel_timeout(self) -> None:
        if self.is_current:
            self._session.channel_timeout()

    def channel_closed(self, exc: Exception | None) -> None:
        if self.is_current:
            self._session.channel_closed(exc)
        else:
            log.debug("stale control channel closed", error=str(exc) if exc else None)


class Session:
    """One logical connection to Soundpad, with optional reconnect and auto-launch."""

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        data_driver: DataDriver | None = None,
        launcher: LaunchHook | None = None,
        opener: ChannelOpener = open_channel,
    ) -> None:
        self.options = options or ClientOptions()
        self._data_driver = data_driver
        self._launcher: LaunchHook = launcher or NullLauncher()
        self._opener = opener
        self._state = ConnectionState.DISCONNECTED
        self._channel: Channel | None = None
        self._events: _ChannelEvents | None = None
        self._pending: PendingRequest | None = None
        self._ready: asyncio.Future[bool] | None = None
        self._connect_lock = asyncio.Lock()
        self._query_lock = asyncio.Lock()
        self._reconnect_task: asyncio.Task | None = None
        self._stop_requested = False
        self._listeners: dict[SessionEventType, list[EventCallback]] = {
            event_type: [] for event_type in SessionEventType
        }
        self._callback_tasks: set[asyncio.Task] = set()
        self._log = log.bind(pipe=self.options.pipe_name)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def uses_data_driver(self) -> bool:
        return self._data_driver is not None

    @property
    def is_reconnecting(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    # ------------------------------------------------------------------
    # Lifecycle observers
    # ------------------------------------------------------------------

    def on(self, event_type: SessionEventType | str, callback: EventCallback) -> Callable[[], None]:
        """Register ``callback`` for a lifecycle event. Returns an unsubscribe function."""
        kind = SessionEventType(event_type)
        self._listeners[kind].append(callback)
        return lambda: self.off(kind, callback)

    def off(self, event_type: SessionEventType | str, callback: EventCallback) -> None:
        try:
            self._listeners[SessionEventType(event_type)].remove(callback)
        except ValueError:
            pass

    def _emit(self, event_type: SessionEventType, **payload: Any) -> None:
        event = SessionEvent(event_type=event_type, payload=payload)
        for callback in list(self._listeners[event_type]):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._callback_tasks.add(task)
                    task.add_done_callback(self._callback_tasks.discard)
            except Exception:
                self._log.exception("session event callback failed", event_type=event_type.value)

    # ------------------------------------------------------------------
    # Connection-ready signal
    # ------------------------------------------------------------------

    def _ready_signal(self) -> asyncio.Future[bool]:
        if self._ready is None:
            self._ready = asyncio.get_running_loop().create_future()
        return self._ready

    def _rearm_ready(self) -> None:
        # Waiters on a still-pending signal keep it; only a resolved one is replaced.
        if self._ready is None or self._ready.done():
            self._ready = asyncio.get_running_loop().create_future()

    def _resolve_ready(self, connected: bool) -> None:
        signal = self._ready_signal()
        if not signal.done():
            signal.set_result(connected)

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self, data_driver: DataDriver | None = None) -> None:
        """Open the control channel, or adopt ``data_driver`` in its place.

        Raises the underlying ``OSError`` when the pipe cannot be opened.
        """
        if data_driver is not None:
            self._data_driver = data_driver
        self._stop_requested = False
        if self._data_driver is not None:
            self._mark_connected()
            return
        await self._connect(final=True)

    async def _connect(self, final: bool) -> None:
        async with self._connect_lock:
            if self._channel is not None and not self._channel.is_closing:
                return
            self._rearm_ready()
            self._state = ConnectionState.CONNECTING
            try:
                if self.options.start_on_connect:
                    await self._launcher.launch()
                events = _ChannelEvents(self)
                channel = await self._opener(
                    self.options.pipe_name,
                    events,
                    idle_timeout=self.options.idle_timeout,
                )
                if channel.is_closing:
                    raise ChannelClosedError("Control channel closed while connecting")
            except asyncio.CancelledError:
                self._state = ConnectionState.DISCONNECTED
                if final:
                    self._resolve_ready(False)
                raise
            except Exception as e:
                self._state = ConnectionState.DISCONNECTED
                self._log.warning("connect failed", error=str(e))
                if final:
                    self._resolve_ready(False)
                raise

            self._channel = channel
            self._events = events
            self._mark_connected()

    def _mark_connected(self) -> None:
        self._state = ConnectionState.CONNECTED
        self._resolve_ready(True)
        self._log.info("connected to soundpad", driver=self._data_driver is not None)
        self._emit(SessionEventType.CONNECTED)

    async def disconnect(self) -> None:
        """Close the control channel. Does nothing when no channel is open."""
        self._stop_requested = True
        if self.is_reconnecting:
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
        self._reconnect_task = None

        channel = self._channel
        if channel is not None:
            # Detach first; the transport's own close notification arrives stale.
            self._release_channel(error=None)
            channel.close()
        elif self._state is not ConnectionState.DISCONNECTED:
            self._state = ConnectionState.DISCONNECTED
            self._emit(SessionEventType.CLOSE, error=None)
        if self._ready is not None and not self._ready.done():
            self._ready.set_result(False)

    async def _reconnect(self) -> None:
        attempt = 0
        try:
            while not self._stop_requested:
                attempt += 1
                self._emit(SessionEventType.RECONNECTING, attempt=attempt)
                try:
                    await self._connect(final=False)
                    return
                except Exception as e:
                    self._log.warning(
                        "reconnect failed",
                        attempt=attempt,
                        error=str(e),
                        delay=self.options.reconnect_delay,
                    )
                self._state = ConnectionState.CONNECTING
                await asyncio.sleep(self.options.reconnect_delay)
            self._state = ConnectionState.DISCONNECTED
        except asyncio.CancelledError:
            self._state = ConnectionState.DISCONNECTED
            raise

    # ------------------------------------------------------------------
    # Request / response
    # ------------------------------------------------------------------

    async def send_query(self, command: str) -> str:
        """Send one command and return the raw reply text."""
        if self._data_driver is not None:
            return await self._data_driver(command)

        if self._state is ConnectionState.DISCONNECTED and not self.is_reconnecting:
            if not self.options.start_on_connect:
                raise NotConnectedError("Not connected to Soundpad. Call connect() first.")
            await self.connect()

        async with self._query_lock:
            channel = await self._wait_until_ready()
            future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._pending = PendingRequest(command=command, future=future)
            self._log.debug("sending command", command=command)
            channel.write(command.encode("utf-8"))
            try:
                return await future
            finally:
                self._pending = None

    async def _wait_until_ready(self) -> Channel:
        while True:
            channel = self._channel
            if (
                self._state is ConnectionState.CONNECTED
                and channel is not None
                and not channel.is_closing
            ):
                return channel
            if self._state is not ConnectionState.CONNECTING and not self.is_reconnecting:
                raise NotConnectedError("Not connected to Soundpad")
            # A signal that already fired belongs to an earlier connection attempt.
            self._rearm_ready()
            if not await self._ready_signal():
                raise NotConnectedError("Connecting to Soundpad failed")

    # ------------------------------------------------------------------
    # Channel events
    # ------------------------------------------------------------------

    def channel_data(self, data: bytes) -> None:
        pending = self._pending
        if pending is None or pending.future.done():
            self._log.warning("unsolicited data from soundpad", size=len(data))
            return
        self._pending = None
        pending.future.set_result(data.decode("utf-8", errors="replace"))

    def channel_end(self) -> None:
        self._log.debug("control channel ended by soundpad")
        self._state = ConnectionState.DISCONNECTED

    def channel_timeout(self) -> None:
        self._log.warning("control channel timed out", timeout=self.options.idle_timeout)
        self._state = ConnectionState.DISCONNECTED
        if self._channel is not None:
            self._channel.close()

    def channel_closed(self, exc: Exception | None) -> None:
        if exc is not None:
            self._log.warning("control channel error", error=str(exc))
            self._emit(SessionEventType.ERROR, error=str(exc))

        self._release_channel(error=str(exc) if exc else None)

        if self.options.auto_reconnect and not self._stop_requested and not self.is_reconnecting:
            self._state = ConnectionState.CONNECTING
            self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect())

    def _release_channel(self, error: str | None) -> None:
        self._channel = None
        self._events = None
        self._state = ConnectionState.DISCONNECTED
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.future.done():
            pending.future.set_exception(
                ChannelClosedError(f"Control channel closed before '{pending.command}' was answered")
            )
        self._rearm_ready()
        self._log.info("control channel closed")
        self._emit(SessionEventType.CLOSE, error=error)
