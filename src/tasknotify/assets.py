"""On-disk assets handed to external players and shells.

Both kinds are materialised into the data directory on first use and reused
afterwards:

  sounds: short synthesized chimes, one per SoundFile, unless the user
           drops their own <name>.wav into the sounds directory
  toast:  the PowerShell toast script shipped inside the package
"""

from __future__ import annotations

import math
import wave
from array import array
from importlib import resources
from pathlib import Path

import structlog

from tasknotify.config import Settings
from tasknotify.models import SoundFile

logger = structlog.get_logger()

SAMPLE_RATE = 22050
NOTE_SECONDS = 0.18
TOAST_SCRIPT_NAME = "toast-notification.ps1"

# Note frequencies (Hz) per chime; 0.0 is a rest.
CHIMES: dict[SoundFile, tuple[float, ...]] = {
    SoundFile.ABSTRACT_SOUND1: (659.25, 880.00),
    SoundFile.ABSTRACT_SOUND2: (523.25, 659.25, 783.99),
    SoundFile.ABSTRACT_SOUND3: (880.00, 0.0, 880.00),
    SoundFile.ABSTRACT_SOUND4: (783.99, 1046.50),
    SoundFile.COW_MOOING: (130.81, 110.00, 98.00),
    SoundFile.PHONE_VIBRATION: (180.0, 0.0, 180.0, 0.0, 180.0),
    SoundFile.ROOSTER: (587.33, 880.00, 1174.66, 880.00),
}


class AssetError(RuntimeError):
    """An asset could not be located or written."""


def _render_chime(notes: tuple[float, ...]) -> array:
    samples = array("h")
    per_note = int(SAMPLE_RATE * NOTE_SECONDS)
    for freq in notes:
        for i in range(per_note):
            if freq <= 0.0:
                samples.append(0)
                continue
            # Linear fade-out per note avoids clicks between notes
            envelope = 1.0 - i / per_note
            value = 0.4 * envelope * math.sin(2 * math.pi * freq * i / SAMPLE_RATE)
            samples.append(int(value * 32767))
    return samples


def write_chime(path: Path, sound_file: SoundFile) -> None:
    """Write the synthesized chime for `sound_file` as 16-bit mono WAV."""
    samples = _render_chime(CHIMES[sound_file])
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(samples.tobytes())


def sound_path(sound_file: SoundFile, settings: Settings) -> Path:
    """Return a playable file for `sound_file`, creating it if needed.

    Raises AssetError if the file neither exists nor can be written.
    """
    target = Path(settings.sounds_dir) / sound_file.filename
    if target.is_file():
        return target

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        write_chime(target, sound_file)
    except (OSError, wave.Error) as e:
        raise AssetError(f"cannot create sound asset {target}: {e}") from e

    logger.info("sound_asset_created", path=str(target), sound=sound_file.value)
    return target


def bundled_toast_script() -> str:
    return resources.files("tasknotify").joinpath("scripts", TOAST_SCRIPT_NAME).read_text(
        encoding="utf-8"
    )


def get_powershell_script(settings: Settings) -> Path:
    """Return the toast script path inside the data dir, refreshing stale copies.

    Raises AssetError if the script cannot be read or written.
    """
    target = Path(settings.data_dir) / "scripts" / TOAST_SCRIPT_NAME
    try:
        content = bundled_toast_script()
        if target.is_file() and target.read_text(encoding="utf-8") == content:
            return target
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        raise AssetError(f"cannot materialise toast script {target}: {e}") from e

    logger.debug("toast_script_written", path=str(target))
    return target
