"""Configuration management for tasknotify.

Loads settings from environment variables and .env file.
Nothing here is persisted; every process reads its own environment.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from tasknotify.models import NotificationConfig, SoundFile

load_dotenv()

# Presence alone (any value) disables desktop-bus toasts on Linux.
DISABLE_DBUS_ENV = "DISABLE_DBUS_NOTIFICATIONS"


def _env_flag(name: str, default: bool) -> bool | str:
    """Raw flag text for pydantic to coerce; unset or blank means `default`."""
    raw = os.getenv(name, "").strip()
    return raw or default


def _default_data_dir() -> str:
    # Path.home() raises when there is no HOME and no passwd entry
    return os.getenv("TASKNOTIFY_DATA_DIR") or str(Path.home() / ".tasknotify")


def _default_sounds_dir() -> str:
    return os.getenv("TASKNOTIFY_SOUNDS_DIR") or str(Path(_default_data_dir()) / "sounds")


class Settings(BaseModel):
    """Application settings, all from env vars or defaults."""

    # Env-derived defaults go through validation too (e.g. str -> SoundFile)
    model_config = ConfigDict(validate_default=True)

    # Channels
    sound_enabled: bool = Field(default_factory=lambda: _env_flag("TASKNOTIFY_SOUND", True))
    push_enabled: bool = Field(default_factory=lambda: _env_flag("TASKNOTIFY_PUSH", True))
    sound_file: SoundFile = Field(
        default_factory=lambda: os.getenv("TASKNOTIFY_SOUND_FILE", SoundFile.ABSTRACT_SOUND4.value)  # type: ignore[arg-type]
    )
    app_name: str = Field(default_factory=lambda: os.getenv("TASKNOTIFY_APP_NAME", "tasknotify"))

    # Timeouts (seconds)
    bus_probe_timeout: float = Field(
        default_factory=lambda: float(os.getenv("TASKNOTIFY_BUS_PROBE_TIMEOUT", "0.5"))
    )
    push_timeout: float = Field(
        default_factory=lambda: float(os.getenv("TASKNOTIFY_PUSH_TIMEOUT", "2"))
    )
    foreign_root_timeout: float = Field(
        default_factory=lambda: float(os.getenv("TASKNOTIFY_FOREIGN_ROOT_TIMEOUT", "5"))
    )

    # Storage
    data_dir: str = Field(default_factory=_default_data_dir)
    sounds_dir: str = Field(default_factory=_default_sounds_dir)

    def notification_config(self) -> NotificationConfig:
        """Per-call config seeded from the environment defaults."""
        return NotificationConfig(
            sound_enabled=self.sound_enabled,
            push_enabled=self.push_enabled,
            sound_file=self.sound_file,
        )

    def ensure_data_dir(self) -> Path:
        """Create data directory if it doesn't exist."""
        p = Path(self.data_dir)
        p.mkdir(parents=True, exist_ok=True)
        return p


def load_settings() -> Settings:
    """Load settings from environment."""
    return Settings()
