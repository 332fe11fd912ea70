"""Audio container output."""

from firesynth.audio.wav import save_wav

__all__ = [
    "save_wav",
]
