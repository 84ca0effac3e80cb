"""tasknotify CLI.

Usage:
    tasknotify send TITLE MESSAGE    # Chime and/or toast right now
    tasknotify halted TASK_TITLE     # Notify as if an execution just halted
    tasknotify status                # Show platform and cached environment facts
    tasknotify sounds                # List available chimes
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.table import Table

from tasknotify.models import ExecutionStatus, SoundFile

console = Console()

_SOUND_CHOICE = click.Choice([s.value for s in SoundFile])


@click.group()
@click.version_option(package_name="tasknotify")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def cli(verbose: bool) -> None:
    """tasknotify: know when your background task is done."""
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


# ── SEND ──────────────────────────────────────────────────────


@cli.command()
@click.argument("title")
@click.argument("message")
@click.option("--sound/--no-sound", default=None, help="Play the completion chime")
@click.option("--push/--no-push", default=None, help="Show a desktop toast")
@click.option("--sound-file", type=_SOUND_CHOICE, default=None, help="Which chime to play")
def send(
    title: str,
    message: str,
    sound: bool | None,
    push: bool | None,
    sound_file: str | None,
) -> None:
    """Send a notification with TITLE and MESSAGE."""
    from tasknotify.service import notify

    settings = _load_settings_or_exit()
    config = _build_config(settings, sound, push, sound_file)
    asyncio.run(notify(config, title, message, settings=settings))
    console.print(f"  Dispatched: sound={'on' if config.sound_enabled else 'off'}, "
                  f"push={'on' if config.push_enabled else 'off'}")


# ── HALTED ────────────────────────────────────────────────────


@cli.command()
@click.argument("task_title")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ExecutionStatus]),
    default=ExecutionStatus.COMPLETED.value,
    help="Terminal status of the execution",
)
@click.option("--attempt-id", default="manual", help="Task attempt identifier")
@click.option("--branch", default=None, help="Branch the attempt ran on")
@click.option("--executor", default="", help="Executor that ran the attempt")
@click.option("--sound/--no-sound", default=None, help="Play the completion chime")
@click.option("--push/--no-push", default=None, help="Show a desktop toast")
@click.option("--sound-file", type=_SOUND_CHOICE, default=None, help="Which chime to play")
def halted(
    task_title: str,
    status: str,
    attempt_id: str,
    branch: str | None,
    executor: str,
    sound: bool | None,
    push: bool | None,
    sound_file: str | None,
) -> None:
    """Notify that the execution of TASK_TITLE halted."""
    from tasknotify.models import ExecutionContext, ExecutionProcess, Task, TaskAttempt
    from tasknotify.service import format_halted_message, notify_execution_halted

    settings = _load_settings_or_exit()
    config = _build_config(settings, sound, push, sound_file)
    ctx = ExecutionContext(
        task=Task(title=task_title),
        task_attempt=TaskAttempt(id=attempt_id, branch=branch, executor=executor),
        execution_process=ExecutionProcess(status=ExecutionStatus(status)),
    )

    asyncio.run(notify_execution_halted(config, ctx, settings=settings))

    formatted = format_halted_message(ctx)
    if formatted is None:
        console.print("[yellow]Execution still running, nothing sent.[/yellow]")
        return
    console.print(f"\n[bold]{formatted[0]}[/bold]")
    console.print(formatted[1])


# ── STATUS ────────────────────────────────────────────────────


@cli.command()
@click.option("--recheck", is_flag=True, help="Forget cached facts and probe again")
def status(recheck: bool) -> None:
    """Show the detected platform and cached environment facts."""
    from tasknotify.assets import AssetError, get_powershell_script, sound_path
    from tasknotify.cache import desktop_bus_gate, reset_environment_caches
    from tasknotify.environment import classify_platform
    from tasknotify.models import PlatformTarget
    from tasknotify.paths import resolve_foreign_root

    settings = _load_settings_or_exit()
    if recheck:
        reset_environment_caches()

    target = classify_platform()

    table = Table(title="tasknotify Status")
    table.add_column("Fact", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Platform", target.value)

    if target is PlatformTarget.LINUX:
        asyncio.run(desktop_bus_gate.check(settings.bus_probe_timeout))
        state = desktop_bus_gate.state.value
        color = "green" if state == "available" else "red"
        table.add_row("Desktop bus", f"[{color}]{state}[/{color}]")

    if target is PlatformTarget.WSL2:
        root = asyncio.run(resolve_foreign_root(settings.foreign_root_timeout))
        table.add_row("Windows root", root or "[red]unresolved[/red]")

    try:
        table.add_row("Sound asset", str(sound_path(settings.sound_file, settings)))
    except AssetError as e:
        table.add_row("Sound asset", f"[red]{e}[/red]")

    if target in (PlatformTarget.WINDOWS, PlatformTarget.WSL2):
        try:
            table.add_row("Toast script", str(get_powershell_script(settings)))
        except AssetError as e:
            table.add_row("Toast script", f"[red]{e}[/red]")

    table.add_row("Sound", "on" if settings.sound_enabled else "off")
    table.add_row("Push", "on" if settings.push_enabled else "off")
    table.add_row("Data dir", settings.data_dir)
    table.add_row("Version", _get_version())

    console.print(table)


# ── SOUNDS ────────────────────────────────────────────────────


@cli.command()
def sounds() -> None:
    """List the known chimes and whether each is on disk yet."""
    settings = _load_settings_or_exit()

    table = Table(title="Chimes")
    table.add_column("Name", style="cyan", no_wrap=True, min_width=16)
    table.add_column("File", style="white")
    table.add_column("On disk", justify="center")

    for sound in SoundFile:
        path = Path(settings.sounds_dir) / sound.filename
        marker = "[green]yes[/green]" if path.is_file() else "[dim]no[/dim]"
        name = f"[bold]{sound.value}[/bold]" if sound == settings.sound_file else sound.value
        table.add_row(name, str(path), marker)

    console.print(table)


# ── Helpers ───────────────────────────────────────────────────


def _load_settings_or_exit():
    from tasknotify.config import load_settings

    try:
        return load_settings()
    except (ValueError, RuntimeError) as e:
        raise click.ClickException(f"Invalid TASKNOTIFY_* settings: {e}")


def _build_config(settings, sound: bool | None, push: bool | None, sound_file: str | None):
    """Environment defaults, overridden by whatever flags were given."""
    config = settings.notification_config()
    updates: dict = {}
    if sound is not None:
        updates["sound_enabled"] = sound
    if push is not None:
        updates["push_enabled"] = push
    if sound_file is not None:
        updates["sound_file"] = SoundFile(sound_file)
    return config.model_copy(update=updates)


def _get_version() -> str:
    try:
        from tasknotify import __version__
        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    cli()
