"""Runtime platform classification.

WSL2 is detected at runtime, never assumed from the interpreter build: the
same installation runs unmodified inside and outside a WSL2 distro.
"""

from __future__ import annotations

import os
import platform

from tasknotify.models import PlatformTarget

PROC_VERSION = "/proc/version"


def is_wsl2() -> bool:
    """True when running as a Linux guest under WSL.

    Any inconclusive probe counts as native Linux.
    """
    if platform.system() != "Linux":
        return False
    if os.environ.get("WSL_DISTRO_NAME"):
        return True
    if "microsoft" in platform.release().lower():
        return True
    try:
        with open(PROC_VERSION, encoding="utf-8", errors="replace") as f:
            return "microsoft" in f.read().lower()
    except OSError:
        return False


def classify_platform(system: str | None = None) -> PlatformTarget:
    """Map the host OS (plus the WSL probe) to exactly one target."""
    system = system or platform.system()
    if system == "Darwin":
        return PlatformTarget.MACOS
    if system == "Windows":
        return PlatformTarget.WINDOWS
    if system == "Linux" and is_wsl2():
        return PlatformTarget.WSL2
    # Linux and the other POSIX families share the native Linux chains
    return PlatformTarget.LINUX
