"""Shared fixtures: fake process seams and a clean process-wide cache per test."""

from __future__ import annotations

import pytest
import structlog

from tasknotify.cache import reset_environment_caches
from tasknotify.config import DISABLE_DBUS_ENV, Settings
from tasknotify.process import LaunchResult, RunResult


class FakeLauncher:
    """Stands in for spawn_detached; records every launch attempt."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.failing: set[str] = set()

    async def __call__(self, argv, *, quiet: bool = True) -> LaunchResult:
        argv = list(argv)
        self.calls.append(argv)
        if argv[0] in self.failing:
            return LaunchResult(argv=argv, error=f"[Errno 2] No such file or directory: '{argv[0]}'")
        return LaunchResult(argv=argv, pid=4242)

    @property
    def commands(self) -> list[str]:
        return [argv[0] for argv in self.calls]


class FakeRunner:
    """Stands in for run_bounded; returns a canned result."""

    def __init__(self, result: RunResult | None = None) -> None:
        self.calls: list[list[str]] = []
        self.result = result

    async def __call__(self, argv, timeout, *, cwd=None) -> RunResult:
        argv = list(argv)
        self.calls.append(argv)
        if self.result is not None:
            return self.result.model_copy(update={"argv": argv})
        return RunResult(argv=argv, returncode=0)


@pytest.fixture(autouse=True)
def _clean_state(monkeypatch):
    monkeypatch.delenv(DISABLE_DBUS_ENV, raising=False)
    reset_environment_caches()
    yield
    reset_environment_caches()
    structlog.reset_defaults()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        sounds_dir=str(tmp_path / "data" / "sounds"),
        push_timeout=0.2,
        bus_probe_timeout=0.5,
        foreign_root_timeout=1.0,
    )


@pytest.fixture
def launcher(monkeypatch) -> FakeLauncher:
    fake = FakeLauncher()
    monkeypatch.setattr("tasknotify.chains.spawn_detached", fake)
    return fake


@pytest.fixture
def bus_probe(monkeypatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr("tasknotify.cache.run_bounded", fake)
    return fake


@pytest.fixture
def root_probe(monkeypatch) -> FakeRunner:
    fake = FakeRunner(RunResult(argv=[], returncode=0, stdout=b"\\\\wsl.localhost\\Ubuntu\r\n"))
    monkeypatch.setattr("tasknotify.paths.run_bounded", fake)
    return fake
