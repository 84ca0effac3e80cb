"""Process-lifetime environment facts.

Two caches, both lock-free:

  desktop_bus_gate:   sticky circuit breaker over desktop-bus availability
  foreign_root_cache: the Windows-side path of the WSL root filesystem

Concurrent first callers may each run a probe. They converge on whichever
value the cell accepted first; no reader ever waits on another initializer.
"""

from __future__ import annotations

import os
from typing import Generic, TypeVar

import structlog

from tasknotify.config import DISABLE_DBUS_ENV
from tasknotify.models import CircuitState
from tasknotify.process import run_bounded

logger = structlog.get_logger()

T = TypeVar("T")

DBUS_PROBE_COMMAND = [
    "dbus-send",
    "--session",
    "--dest=org.freedesktop.DBus",
    "--type=method_call",
    "--print-reply",
    "/org/freedesktop/DBus",
    "org.freedesktop.DBus.GetId",
]


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


class OnceCell(Generic[T]):
    """First writer wins; every later `set` returns the winning value.

    Relies on `dict.setdefault` being atomic for a str key under the GIL.
    """

    _KEY = "value"

    def __init__(self) -> None:
        self._slot: dict[str, T] = {}

    def get(self) -> T | _Unset:
        return self._slot.get(self._KEY, UNSET)

    def set(self, value: T) -> T:
        return self._slot.setdefault(self._KEY, value)

    @property
    def is_set(self) -> bool:
        return self._KEY in self._slot

    def reset(self) -> None:
        self._slot.clear()


class DesktopBusGate:
    """Circuit breaker deciding whether Linux desktop toasts are attempted.

    unknown ──check──▶ available | unavailable
    available ──trip──▶ unavailable

    Nothing moves back toward available except an explicit `reset()`.
    """

    def __init__(self) -> None:
        self._verdict: OnceCell[bool] = OnceCell()
        self._tripped = False
        self.evaluations = 0

    @property
    def state(self) -> CircuitState:
        if self._tripped:
            return CircuitState.UNAVAILABLE
        verdict = self._verdict.get()
        if verdict is UNSET:
            return CircuitState.UNKNOWN
        return CircuitState.AVAILABLE if verdict else CircuitState.UNAVAILABLE

    def trip(self, reason: str) -> None:
        if not self._tripped:
            logger.info("desktop_bus_disabled", reason=reason)
        self._tripped = True
        self._verdict.set(False)

    async def check(self, timeout: float = 0.5) -> bool:
        """Return whether toasts may be attempted, probing at most once."""
        state = self.state
        if state is not CircuitState.UNKNOWN:
            return state is CircuitState.AVAILABLE

        self.evaluations += 1
        if DISABLE_DBUS_ENV in os.environ:
            logger.info("desktop_bus_opt_out", env=DISABLE_DBUS_ENV)
            return self._verdict.set(False)

        result = await run_bounded(DBUS_PROBE_COMMAND, timeout)
        if result.timed_out:
            logger.warning("desktop_bus_probe_timed_out", timeout=timeout)
        elif result.error:
            logger.warning("desktop_bus_probe_failed", error=result.error)

        available = self._verdict.set(result.ok)
        if not available:
            logger.info("desktop_bus_unavailable", detail="linux desktop toasts will be skipped")
        return available and not self._tripped

    def reset(self) -> None:
        self._verdict.reset()
        self._tripped = False
        self.evaluations = 0


class ForeignRootCache(OnceCell[str | None]):
    """`None` once stored means resolution failed for good."""


desktop_bus_gate = DesktopBusGate()
foreign_root_cache = ForeignRootCache()


def reset_environment_caches() -> None:
    """Forget every cached environment fact (explicit override)."""
    desktop_bus_gate.reset()
    foreign_root_cache.reset()
