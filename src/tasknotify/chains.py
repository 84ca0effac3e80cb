"""Fallback chains per capability × platform.

Chains are static data: an ordered tuple of mechanisms, tried until one is
launched. A launch is the success criterion for audio and for detached
toasts; the process is never waited on. The Linux toast is the exception:
it is a library call bounded by a timeout and gated by the desktop-bus
circuit breaker.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog
from plyer import notification
from pydantic import BaseModel, ConfigDict

from tasknotify.assets import AssetError, get_powershell_script, sound_path
from tasknotify.cache import desktop_bus_gate
from tasknotify.config import Settings
from tasknotify.models import PlatformTarget, SoundFile
from tasknotify.paths import foreign_path_or_original
from tasknotify.process import LaunchResult, call_bounded, spawn_detached

logger = structlog.get_logger()

LINUX_TOAST_EXPIRE_SECONDS = 10


def launched(result: LaunchResult) -> bool:
    return result.ok


class Mechanism(BaseModel):
    """One way of doing something: an argv template plus its success test."""

    model_config = ConfigDict(frozen=True)

    name: str
    argv: tuple[str, ...]
    quiet: bool = True
    predicate: Callable[[LaunchResult], bool] = launched

    def render(self, **values: str) -> list[str]:
        return [part.format(**values) for part in self.argv]


FallbackChain = tuple[Mechanism, ...]


# ── Audio ─────────────────────────────────────────────────────────────────────

_POWERSHELL_PLAY = Mechanism(
    name="powershell-soundplayer",
    argv=("powershell.exe", "-c", '(New-Object Media.SoundPlayer "{path}").PlaySync()'),
)

AUDIO_CHAINS: dict[PlatformTarget, FallbackChain] = {
    PlatformTarget.MACOS: (
        Mechanism(name="afplay", argv=("afplay", "{path}")),
    ),
    PlatformTarget.LINUX: (
        Mechanism(name="paplay", argv=("paplay", "{path}")),
        Mechanism(name="aplay", argv=("aplay", "{path}")),
        # Bell must reach the terminal, so output is inherited
        Mechanism(name="terminal-bell", argv=("echo", "-e", "\\a"), quiet=False),
    ),
    PlatformTarget.WINDOWS: (_POWERSHELL_PLAY,),
    PlatformTarget.WSL2: (_POWERSHELL_PLAY,),
}


# ── Push ──────────────────────────────────────────────────────────────────────

_POWERSHELL_TOAST = Mechanism(
    name="powershell-toast",
    argv=(
        "powershell.exe",
        "-NoProfile",
        "-ExecutionPolicy", "Bypass",
        "-File", "{script}",
        "-Title", "{title}",
        "-Message", "{message}",
    ),
)

PUSH_CHAINS: dict[PlatformTarget, FallbackChain] = {
    PlatformTarget.MACOS: (
        Mechanism(name="osascript", argv=("osascript", "-e", "{script}")),
    ),
    PlatformTarget.WINDOWS: (_POWERSHELL_TOAST,),
    PlatformTarget.WSL2: (_POWERSHELL_TOAST,),
}


async def run_chain(chain: FallbackChain, **values: str) -> Mechanism | None:
    """Try each mechanism in order; return the first one that launched."""
    for mechanism in chain:
        try:
            argv = mechanism.render(**values)
        except (KeyError, IndexError, ValueError) as e:
            logger.error("mechanism_template_invalid", mechanism=mechanism.name, error=str(e))
            continue

        result = await spawn_detached(argv, quiet=mechanism.quiet)
        if mechanism.predicate(result):
            logger.debug("mechanism_launched", mechanism=mechanism.name, pid=result.pid)
            return mechanism
        logger.debug("mechanism_failed", mechanism=mechanism.name, error=result.error)

    logger.warning("fallback_chain_exhausted", mechanisms=[m.name for m in chain])
    return None


async def play_sound(
    sound_file: SoundFile,
    target: PlatformTarget,
    settings: Settings,
) -> Mechanism | None:
    """Launch the platform's audio chain for `sound_file`. Never raises."""
    try:
        path = await asyncio.to_thread(sound_path, sound_file, settings)
    except AssetError as e:
        logger.error("sound_asset_unavailable", sound=sound_file.value, error=str(e))
        return None

    path_str = await foreign_path_or_original(path, target, settings.foreign_root_timeout)
    return await run_chain(AUDIO_CHAINS[target], path=path_str)


def applescript_escape(s: str) -> str:
    """Escape for embedding in an AppleScript double-quoted string."""
    return s.replace("\\", "\\\\").replace('"', '\\"')


def macos_toast_script(title: str, message: str) -> str:
    return (
        f'display notification "{applescript_escape(message)}"'
        f' with title "{applescript_escape(title)}"'
        ' sound name "Glass"'
    )


async def push_macos(title: str, message: str, settings: Settings) -> None:
    await run_chain(PUSH_CHAINS[PlatformTarget.MACOS], script=macos_toast_script(title, message))


async def push_linux(title: str, message: str, settings: Settings) -> None:
    """Desktop-bus toast, skipped entirely once the breaker is open."""
    if not await desktop_bus_gate.check(settings.bus_probe_timeout):
        logger.debug("push_skipped", reason="desktop_bus_unavailable", title=title)
        return

    def _show() -> None:
        notification.notify(
            title=title,
            message=message,
            app_name=settings.app_name,
            timeout=LINUX_TOAST_EXPIRE_SECONDS,
        )

    result = await call_bounded(_show, settings.push_timeout)
    if result.timed_out:
        # The bus client can hang forever; one slow call disables all future ones
        logger.error("push_timed_out", timeout=settings.push_timeout, title=title)
        desktop_bus_gate.trip("toast_timeout")
    elif result.error:
        logger.error("push_failed", error=result.error, title=title)
        desktop_bus_gate.trip("toast_error")
    else:
        logger.debug("push_sent", title=title)


async def push_windows(title: str, message: str, settings: Settings) -> None:
    await _push_powershell(title, message, settings, PlatformTarget.WINDOWS)


async def push_wsl2(title: str, message: str, settings: Settings) -> None:
    await _push_powershell(title, message, settings, PlatformTarget.WSL2)


async def _push_powershell(
    title: str,
    message: str,
    settings: Settings,
    target: PlatformTarget,
) -> None:
    try:
        script = await asyncio.to_thread(get_powershell_script, settings)
    except AssetError as e:
        logger.error("toast_script_unavailable", error=str(e))
        return

    script_str = await foreign_path_or_original(script, target, settings.foreign_root_timeout)
    await run_chain(PUSH_CHAINS[target], script=script_str, title=title, message=message)


PushHandler = Callable[[str, str, Settings], Awaitable[None]]

PUSH_HANDLERS: dict[PlatformTarget, PushHandler] = {
    PlatformTarget.MACOS: push_macos,
    PlatformTarget.LINUX: push_linux,
    PlatformTarget.WINDOWS: push_windows,
    PlatformTarget.WSL2: push_wsl2,
}


async def send_push(title: str, message: str, target: PlatformTarget, settings: Settings) -> None:
    """Dispatch a toast through the handler registered for `target`."""
    await PUSH_HANDLERS[target](title, message, settings)
