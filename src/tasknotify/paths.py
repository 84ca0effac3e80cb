"""WSL → Windows path translation for paths handed to powershell.exe."""

from __future__ import annotations

from pathlib import Path, PurePath

import structlog

from tasknotify.cache import UNSET, foreign_root_cache
from tasknotify.models import PlatformTarget
from tasknotify.process import run_bounded

logger = structlog.get_logger()

# Platforms whose asset paths live on the other side of the WSL boundary.
FOREIGN_PATH_TARGETS = frozenset({PlatformTarget.WSL2})

# Prints the UNC root of the distro (\\wsl.localhost\<distro>) when run from "/".
FOREIGN_ROOT_COMMAND = [
    "powershell.exe",
    "-c",
    "(Get-Location).Path -replace '^.*::', ''",
]


async def resolve_foreign_root(timeout: float = 5.0) -> str | None:
    """Windows-side path of the WSL root filesystem, resolved once per process.

    A failed lookup is cached as None and never retried.
    """
    cached = foreign_root_cache.get()
    if cached is not UNSET:
        return cached

    result = await run_bounded(FOREIGN_ROOT_COMMAND, timeout, cwd="/")
    root: str | None = None
    if result.returncode is None:
        logger.error("foreign_root_probe_failed", error=result.error)
    else:
        try:
            root = result.stdout.decode("utf-8").strip() or None
        except UnicodeDecodeError as e:
            logger.error("foreign_root_not_utf8", error=str(e))
        else:
            if root is None:
                logger.error("foreign_root_empty", returncode=result.returncode)

    winner = foreign_root_cache.set(root)
    if winner:
        logger.info("foreign_root_detected", root=winner)
    return winner


async def to_foreign_path(path: str | PurePath, timeout: float = 5.0) -> str | None:
    """Translate a local path for powershell.exe.

    Relative paths are returned unchanged. Absolute paths get the foreign
    root prepended verbatim; PowerShell accepts the mixed separators.
    Returns None when the root could not be resolved.
    """
    path_str = str(path)
    if not path_str.startswith("/"):
        logger.debug("foreign_path_relative", path=path_str)
        return path_str

    root = await resolve_foreign_root(timeout)
    if root is None:
        logger.error("foreign_path_unresolved", path=path_str)
        return None

    translated = f"{root}{path_str}"
    logger.debug("foreign_path_converted", path=path_str, translated=translated)
    return translated


async def foreign_path_or_original(
    path: Path,
    target: PlatformTarget,
    timeout: float = 5.0,
) -> str:
    """Path string to hand to powershell.exe on `target`."""
    if target not in FOREIGN_PATH_TARGETS:
        return str(path)
    return await to_foreign_path(path, timeout) or str(path)
