"""FireSynth — offline MIDI + SoundFont renderer."""

__version__ = "0.1.0"
