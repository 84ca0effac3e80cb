"""Core domain models for tasknotify."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ExecutionStatus(str, Enum):
    """Lifecycle state of an execution process."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    KILLED = "killed"  # cancelled by the user

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class Task(BaseModel):
    id: str = ""
    title: str


class TaskAttempt(BaseModel):
    id: str
    branch: str | None = None
    executor: str = ""


class ExecutionProcess(BaseModel):
    id: str = ""
    status: ExecutionStatus


class ExecutionContext(BaseModel):
    """Everything known about a halted (or halting) execution."""

    task: Task
    task_attempt: TaskAttempt
    execution_process: ExecutionProcess


class SoundFile(str, Enum):
    """Bundled completion chimes. The value is the file stem on disk."""

    ABSTRACT_SOUND1 = "abstract-sound1"
    ABSTRACT_SOUND2 = "abstract-sound2"
    ABSTRACT_SOUND3 = "abstract-sound3"
    ABSTRACT_SOUND4 = "abstract-sound4"
    COW_MOOING = "cow-mooing"
    PHONE_VIBRATION = "phone-vibration"
    ROOSTER = "rooster"

    @property
    def filename(self) -> str:
        return f"{self.value}.wav"


class NotificationConfig(BaseModel):
    """Per-call notification switches supplied by the caller."""

    sound_enabled: bool = True
    push_enabled: bool = True
    sound_file: SoundFile = SoundFile.ABSTRACT_SOUND4


class NotificationRequest(BaseModel):
    """One dispatch. Built per call and never shared."""

    model_config = ConfigDict(frozen=True)

    title: str
    message: str
    sound_enabled: bool
    push_enabled: bool
    sound_asset: SoundFile

    @classmethod
    def build(cls, config: NotificationConfig, title: str, message: str) -> NotificationRequest:
        return cls(
            title=title,
            message=message,
            sound_enabled=config.sound_enabled,
            push_enabled=config.push_enabled,
            sound_asset=config.sound_file,
        )


class PlatformTarget(str, Enum):
    """Which fallback chains and path rules apply to this process."""

    MACOS = "macos"
    LINUX = "linux"
    WSL2 = "wsl2"
    WINDOWS = "windows"


class CircuitState(str, Enum):
    """Desktop-bus availability as seen by this process."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
