"""Tests for the tasknotify CLI."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from tasknotify.cli.main import cli
from tasknotify.models import ExecutionStatus, PlatformTarget, SoundFile


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("TASKNOTIFY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("TASKNOTIFY_SOUNDS_DIR", str(tmp_path / "data" / "sounds"))
    monkeypatch.setenv("TASKNOTIFY_SOUND", "true")
    monkeypatch.setenv("TASKNOTIFY_PUSH", "true")
    return tmp_path


def test_send_applies_flags(env):
    with patch("tasknotify.service.notify", new=AsyncMock()) as notify:
        result = CliRunner().invoke(cli, ["send", "Build", "done", "--no-sound", "--push", "--sound-file", "rooster"])
    assert result.exit_code == 0, result.output
    config, title, message = notify.await_args.args
    assert (title, message) == ("Build", "done")
    assert config.sound_enabled is False
    assert config.push_enabled is True
    assert config.sound_file == SoundFile.ROOSTER


def test_halted_killed_prints_message(env):
    with patch("tasknotify.service.notify", new=AsyncMock()) as notify:
        result = CliRunner().invoke(
            cli, ["halted", "Add login", "--status", "killed", "--branch", "main", "--executor", "codex"],
        )
    assert result.exit_code == 0, result.output
    assert "Task Complete: Add login" in result.output
    assert notify.await_args.args[0].sound_enabled is False


def test_halted_running_sends_nothing(env):
    with patch("tasknotify.service.notify", new=AsyncMock()) as notify:
        result = CliRunner().invoke(cli, ["halted", "Add login", "--status", ExecutionStatus.RUNNING.value])
    assert result.exit_code == 0, result.output
    assert "nothing sent" in result.output
    notify.assert_not_awaited()


def test_invalid_env_is_a_clean_error(env, monkeypatch):
    monkeypatch.setenv("TASKNOTIFY_SOUND_FILE", "air-horn")
    result = CliRunner().invoke(cli, ["send", "T", "M"])
    assert result.exit_code != 0
    assert "Invalid TASKNOTIFY_* settings" in result.output


def test_sounds_lists_every_chime(env):
    result = CliRunner().invoke(cli, ["sounds"])
    assert result.exit_code == 0, result.output
    for sound in SoundFile:
        assert sound.value in result.output


def test_status_on_linux_reports_bus(env, bus_probe):
    with patch("tasknotify.environment.classify_platform", return_value=PlatformTarget.LINUX):
        result = CliRunner().invoke(cli, ["status", "--recheck"])
    assert result.exit_code == 0, result.output
    assert "linux" in result.output
    assert "available" in result.output
    assert len(bus_probe.calls) == 1
