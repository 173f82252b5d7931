"""Process and channel discovery: locate, launch, probe and stop Soundpad.

Only the registry lookup and process launch need Windows; the channel probes
work against whatever ``open_channel`` can reach on the current platform.
"""

from __future__ import annotations

import asyncio
import platform
import re
import subprocess
from typing import Iterator

import psutil
import structlog

from soundpad_remote.config.schema import DEFAULT_PIPE_NAME, DEFAULT_REGISTRY_KEY, ClientOptions
from soundpad_remote.engine.transport import open_channel
from soundpad_remote.errors import TargetNotFoundError, UnsupportedPlatformError

log = structlog.get_logger()

DEFAULT_EXECUTABLE = "Soundpad.exe"


def _require_windows() -> None:
    if platform.system() != "Windows":
        raise UnsupportedPlatformError("This helper is only available on Windows.")


def locate_executable(
    registry_key: str = DEFAULT_REGISTRY_KEY,
    executable_name: str = DEFAULT_EXECUTABLE,
) -> str | None:
    """Return the Soundpad executable path registered for its open command.

    The registry value looks like ``"C:\\Program Files\\Soundpad\\Soundpad.exe" -c "%1"``.
    Returns ``None`` when Soundpad is not registered.
    """
    _require_windows()
    try:
        result = subprocess.run(
            ["reg", "query", registry_key],
            check=False,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except OSError as e:
        log.warning("registry query failed", key=registry_key, error=str(e))
        return None

    if result.returncode != 0:
        log.info("soundpad not registered", key=registry_key, exit_code=result.returncode)
        return None

    pattern = re.compile(rf'"(.*{re.escape(executable_name)})"', re.IGNORECASE)
    match = pattern.search(result.stdout or "")
    if match is None:
        return None
    return match.group(1)


async def launch(path: str) -> asyncio.subprocess.Process:
    """Spawn the Soundpad executable without waiting for it to exit."""
    process = await asyncio.create_subprocess_exec(
        path,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    log.info("soundpad launched", path=path, pid=process.pid)
    return process


def _matching_processes(image_name: str) -> Iterator[psutil.Process]:
    wanted = image_name.lower()
    for proc in psutil.process_iter(["name"]):
        name = proc.info.get("name") or ""
        if name.lower() == wanted:
            yield proc


def is_target_running(image_name: str = DEFAULT_EXECUTABLE) -> bool:
    """Check the process list for a running Soundpad image."""
    return any(True for _ in _matching_processes(image_name))


def terminate_target(image_name: str = DEFAULT_EXECUTABLE, timeout: float = 5.0) -> int:
    """Terminate every running Soundpad process. Returns how many were found."""
    procs = list(_matching_processes(image_name))
    for proc in procs:
        try:
            proc.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            log.warning("could not terminate soundpad", pid=proc.pid, error=str(e))

    _, alive = psutil.wait_procs(procs, timeout=timeout)
    for proc in alive:
        log.warning("soundpad did not exit, killing", pid=proc.pid)
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass

    if procs:
        log.info("soundpad terminated", count=len(procs))
    return len(procs)


class _ProbeListener:
    def channel_data(self, data: bytes) -> None:
        pass

    def channel_end(self) -> None:
        pass

    def channel_timeout(self) -> None:
        pass

    def channel_closed(self, exc: Exception | None) -> None:
        pass


async def is_channel_open(address: str = DEFAULT_PIPE_NAME) -> bool:
    """Try one probe connection to the control pipe and close it right away."""
    try:
        channel = await open_channel(address, _ProbeListener())
    except OSError:
        return False
    channel.close()
    return True


async def wait_for_channel(address: str = DEFAULT_PIPE_NAME, interval: float = 0.1) -> None:
    """Poll the control pipe until a probe connection succeeds. Never times out."""
    while not await is_channel_open(address):
        await asyncio.sleep(interval)
    log.debug("control channel ready", address=address)


async def is_target_open(
    address: str = DEFAULT_PIPE_NAME,
    image_name: str = DEFAULT_EXECUTABLE,
    check_channel: bool = True,
) -> bool:
    """True when Soundpad runs and, if ``check_channel``, its pipe accepts connections."""
    loop = asyncio.get_running_loop()
    running = await loop.run_in_executor(None, is_target_running, image_name)
    if not check_channel:
        return running
    return running and await is_channel_open(address)


class NullLauncher:
    """Launch hook for hosts that cannot manage processes. Does nothing."""

    async def launch(self) -> None:
        log.debug("no launch hook configured, expecting soundpad to be running")


class ProcessLauncher:
    """Launch hook that discovers, starts and waits for a local Soundpad."""

    def __init__(self, options: ClientOptions | None = None) -> None:
        self.options = options or ClientOptions()

    async def launch(self) -> None:
        _require_windows()
        loop = asyncio.get_running_loop()
        running = await loop.run_in_executor(
            None, is_target_running, self.options.executable_name
        )
        if not running:
            path = await loop.run_in_executor(
                None,
                locate_executable,
                self.options.registry_key,
                self.options.executable_name,
            )
            if path is None:
                raise TargetNotFoundError("Could not find the Soundpad executable in the registry")
            await launch(path)
        await wait_for_channel(self.options.pipe_name, self.options.ready_poll_interval)
