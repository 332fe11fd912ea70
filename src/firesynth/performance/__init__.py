"""Performance (MIDI file) loading."""

from firesynth.performance.midi import ChannelEvent, Performance, load_performance

__all__ = [
    "ChannelEvent",
    "Performance",
    "load_performance",
]
