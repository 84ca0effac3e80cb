"""Tests for core domain models."""

import pytest
from pydantic import ValidationError

from tasknotify.models import (
    ExecutionStatus,
    NotificationConfig,
    NotificationRequest,
    SoundFile,
)


def test_only_running_is_non_terminal():
    assert ExecutionStatus.RUNNING.is_terminal is False
    for status in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED, ExecutionStatus.KILLED):
        assert status.is_terminal is True


def test_sound_file_filename():
    assert SoundFile.COW_MOOING.filename == "cow-mooing.wav"


def test_request_copies_config():
    config = NotificationConfig(sound_enabled=False, push_enabled=True, sound_file=SoundFile.ROOSTER)
    req = NotificationRequest.build(config, "Title", "Body")
    assert req.title == "Title"
    assert req.message == "Body"
    assert req.sound_enabled is False
    assert req.push_enabled is True
    assert req.sound_asset == SoundFile.ROOSTER


def test_request_is_immutable():
    req = NotificationRequest.build(NotificationConfig(), "t", "m")
    with pytest.raises(ValidationError):
        req.title = "changed"


def test_config_defaults_enable_both_channels():
    config = NotificationConfig()
    assert config.sound_enabled is True
    assert config.push_enabled is True
