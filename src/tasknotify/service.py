"""Notification dispatch for halted executions.

Entry points never raise and return nothing: every fault is logged at the
point it happens. Sound and push are independent channels; one failing or
being skipped never affects the other.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Awaitable

import structlog

from tasknotify.chains import play_sound, send_push
from tasknotify.config import Settings, load_settings
from tasknotify.environment import classify_platform
from tasknotify.models import (
    ExecutionContext,
    ExecutionStatus,
    NotificationConfig,
    NotificationRequest,
)

logger = structlog.get_logger()

_STATUS_LINES = {
    ExecutionStatus.COMPLETED: "✅ '{title}' completed successfully",
    ExecutionStatus.FAILED: "❌ '{title}' execution failed",
    ExecutionStatus.KILLED: "🛑 '{title}' execution cancelled by user",
}


def format_halted_message(ctx: ExecutionContext) -> tuple[str, str] | None:
    """Return (title, message) for a halted execution, or None while running."""
    template = _STATUS_LINES.get(ctx.execution_process.status)
    if template is None:
        return None

    task_title = ctx.task.title
    attempt = ctx.task_attempt
    branch = attempt.branch if attempt.branch is not None else "none"
    message = (
        f"{template.format(title=task_title)}\n"
        f"Branch: {branch}\n"
        f"Executor: {attempt.executor}"
    )
    return f"Task Complete: {task_title}", message


def effective_config(config: NotificationConfig, ctx: ExecutionContext) -> NotificationConfig:
    """Never chime for a cancellation the user started themselves."""
    if ctx.execution_process.status is ExecutionStatus.KILLED:
        return config.model_copy(update={"sound_enabled": False})
    return config


async def notify_execution_halted(
    config: NotificationConfig,
    ctx: ExecutionContext,
    *,
    settings: Settings | None = None,
) -> None:
    """Notify that an execution stopped. A still-running execution is a no-op."""
    formatted = format_halted_message(ctx)
    if formatted is None:
        logger.warning(
            "notify_on_running_execution",
            attempt_id=ctx.task_attempt.id,
            status=ctx.execution_process.status.value,
        )
        return

    title, message = formatted
    await notify(effective_config(config, ctx), title, message, settings=settings)


async def notify(
    config: NotificationConfig,
    title: str,
    message: str,
    *,
    settings: Settings | None = None,
) -> None:
    """Fire the sound and push channels enabled in `config`."""
    request = NotificationRequest.build(config, title, message)
    if not (request.sound_enabled or request.push_enabled):
        return

    if settings is None:
        try:
            settings = load_settings()
        except (ValueError, RuntimeError) as e:
            # RuntimeError: no resolvable home directory for the default data dir
            logger.error("settings_invalid", error=str(e))
            return

    try:
        target = classify_platform()
    except Exception as e:
        logger.error("platform_detection_failed", error=str(e))
        return
    logger.debug("notify", target=target.value, sound=request.sound_enabled, push=request.push_enabled)

    if request.sound_enabled:
        await _channel("sound", play_sound(request.sound_asset, target, settings))
    if request.push_enabled:
        await _channel("push", send_push(request.title, request.message, target, settings))


async def _channel(name: str, work: Awaitable[object]) -> None:
    # A fault in one channel must reach neither the caller nor the other channel.
    try:
        await work
    except Exception as e:
        logger.error("notification_channel_failed", channel=name, error=str(e))


def _run_async(coro) -> None:
    """Run a coroutine from sync code, even when a loop is already running.

    Inside a running loop, asyncio.run() fails, so the coroutine gets its own
    loop on a worker thread.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            pool.submit(asyncio.run, coro).result()
    else:
        asyncio.run(coro)


def notify_sync(config: NotificationConfig, title: str, message: str, **kwargs) -> None:
    """Blocking wrapper around notify()."""
    _run_async(notify(config, title, message, **kwargs))


def notify_execution_halted_sync(config: NotificationConfig, ctx: ExecutionContext, **kwargs) -> None:
    """Blocking wrapper around notify_execution_halted()."""
    _run_async(notify_execution_halted(config, ctx, **kwargs))
