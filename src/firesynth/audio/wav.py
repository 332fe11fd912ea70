"""WAV encoder — write left/right float buffers as 32-bit float stereo WAV."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import numpy as np
import soundfile as sf

from firesynth.errors import OutputError

logger = logging.getLogger(__name__)

CHANNELS = 2
SUBTYPE = "FLOAT"


def save_wav(
    left: np.ndarray,
    right: np.ndarray,
    path: str | Path,
    sr: int = 44100,
) -> None:
    """Save a stereo pair to a WAV file (IEEE float, 2 channels).

    The file is written next to the destination under a temporary name and
    moved into place once closed, so the destination either holds the
    complete file or is left untouched. The parent directory must exist.

    Args:
        left: Left channel samples.
        right: Right channel samples, same length as ``left``.
        path: Output file path.
        sr: Sample rate.

    Raises:
        ValueError: if the channels differ in length.
        OutputError: if the file cannot be created, written or moved.
    """
    if len(left) != len(right):
        raise ValueError(f"channel lengths differ ({len(left)} != {len(right)})")

    path = Path(path)
    frames = np.column_stack((
        np.asarray(left, dtype=np.float32),
        np.asarray(right, dtype=np.float32),
    ))

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".part", dir=path.parent,
        )
    except OSError as exc:
        raise OutputError(f"Cannot write to {path}: {exc}") from exc
    os.close(fd)

    try:
        sf.write(tmp_name, frames, sr, format="WAV", subtype=SUBTYPE)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except (OSError, RuntimeError) as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise OutputError(f"Cannot write to {path}: {exc}") from exc

    logger.info("Wrote %s (%d frames, %d Hz, %d channels)", path, len(frames), sr, CHANNELS)
