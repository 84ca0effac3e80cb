"""Bounded external execution.

Every helper here resolves to a result object and never raises, so callers
only ever branch on `.ok` and log. Process creation and blocking calls run
in worker threads to keep the event loop free of spawn latency.

  spawn_detached: launch and forget; only process creation is observed
  run_bounded:    run to completion under a hard timeout (child is killed)
  call_bounded:   race a blocking library call against a timeout; on expiry
                  the worker thread is abandoned and its result discarded
"""

from __future__ import annotations

import asyncio
import subprocess
import threading
from typing import Any, Callable, Sequence

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()

# Detached children we have not reaped yet. Pruned on every launch.
_detached: set[subprocess.Popen] = set()


class LaunchResult(BaseModel):
    argv: list[str]
    pid: int | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.pid is not None


class RunResult(BaseModel):
    argv: list[str]
    returncode: int | None = None
    stdout: bytes = b""
    timed_out: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CallResult(BaseModel):
    value: Any = None
    timed_out: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.timed_out and not self.error


def _reap_detached() -> None:
    for proc in list(_detached):
        if proc.poll() is not None:
            _detached.discard(proc)


async def spawn_detached(argv: Sequence[str], *, quiet: bool = True) -> LaunchResult:
    """Start a process without waiting for it.

    With quiet=False the child inherits our stdout/stderr (used by the
    terminal bell, which has to reach the terminal).
    """
    argv = [str(a) for a in argv]
    stream = subprocess.DEVNULL if quiet else None

    def _spawn() -> subprocess.Popen:
        _reap_detached()
        return subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=stream,
            stderr=stream,
        )

    try:
        proc = await asyncio.to_thread(_spawn)
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        logger.debug("launch_failed", command=argv[0] if argv else "", error=str(e))
        return LaunchResult(argv=argv, error=str(e))

    _detached.add(proc)
    logger.debug("launched", command=argv[0], pid=proc.pid)
    return LaunchResult(argv=argv, pid=proc.pid)


async def run_bounded(
    argv: Sequence[str],
    timeout: float,
    *,
    cwd: str | None = None,
) -> RunResult:
    """Run a command to completion, killing it if it outlives `timeout`."""
    argv = [str(a) for a in argv]

    def _run() -> subprocess.CompletedProcess:
        return subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
            cwd=cwd,
            check=False,
        )

    try:
        completed = await asyncio.to_thread(_run)
    except subprocess.TimeoutExpired:
        logger.debug("run_timed_out", command=argv[0], timeout=timeout)
        return RunResult(argv=argv, timed_out=True, error=f"timed out after {timeout}s")
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        logger.debug("run_failed", command=argv[0] if argv else "", error=str(e))
        return RunResult(argv=argv, error=str(e))

    return RunResult(argv=argv, returncode=completed.returncode, stdout=completed.stdout or b"")


async def call_bounded(fn: Callable[[], Any], timeout: float) -> CallResult:
    """Run a blocking callable on a daemon thread, bounded by `timeout`.

    A daemon thread (not the default executor) so a call that never returns
    cannot hold up interpreter shutdown.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def _settle(value: Any, error: str) -> None:
        if not future.done():
            future.set_result((value, error))

    def _worker() -> None:
        try:
            value, error = fn(), ""
        except Exception as e:
            value, error = None, f"{type(e).__name__}: {e}"
        try:
            loop.call_soon_threadsafe(_settle, value, error)
        except RuntimeError:
            pass  # loop already closed; nobody is waiting

    thread = threading.Thread(target=_worker, name="tasknotify-bounded-call", daemon=True)
    try:
        thread.start()
    except RuntimeError as e:
        return CallResult(error=f"worker failed to start: {e}")

    try:
        value, error = await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError:
        return CallResult(timed_out=True, error=f"timed out after {timeout}s")
    return CallResult(value=value, error=error)
