"""Performance loader — parse a Standard MIDI File into a timed event list."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path

import mido

from firesynth.errors import ResourceError, ResourceKind

logger = logging.getLogger(__name__)

# mido message type -> attributes mapped to (data1, data2)
_CHANNEL_MESSAGES: dict[str, tuple[str, ...]] = {
    "note_on": ("note", "velocity"),
    "note_off": ("note", "velocity"),
    "control_change": ("control", "value"),
    "program_change": ("program",),
    "pitchwheel": ("pitch",),
    "aftertouch": ("value",),
    "polytouch": ("note", "value"),
}


@dataclass(frozen=True)
class ChannelEvent:
    """A channel message at an absolute time.

    Attributes:
        time_s: Seconds from the start of the performance.
        kind: mido message type ("note_on", "control_change", ...).
        channel: MIDI channel 0-15.
        data1: Note, controller, program, pitch bend (signed) or pressure.
        data2: Velocity or controller/pressure value (0 when unused).
    """

    time_s: float
    kind: str
    channel: int
    data1: int = 0
    data2: int = 0


@dataclass(frozen=True)
class Performance:
    """A parsed MIDI timeline.

    Attributes:
        path: Source file.
        events: Channel events in playback order.
        duration_s: Time of the last message (incl. end-of-track), >= 0.
        ticks_per_beat: MIDI file resolution.
    """

    path: Path
    events: tuple[ChannelEvent, ...]
    duration_s: float
    ticks_per_beat: int = 480

    @property
    def note_count(self) -> int:
        return sum(1 for e in self.events if e.kind == "note_on" and e.data2 > 0)


def _to_event(msg: mido.Message, time_s: float) -> ChannelEvent:
    values = [getattr(msg, attr) for attr in _CHANNEL_MESSAGES[msg.type]]
    values += [0] * (2 - len(values))
    return ChannelEvent(time_s, msg.type, msg.channel, values[0], values[1])


def load_performance(path: str | Path) -> Performance:
    """Open and parse a MIDI file.

    Tempo changes are applied while merging tracks, so event times and the
    total duration are in seconds.

    Args:
        path: Path to a .mid/.midi file.

    Returns:
        The parsed ``Performance``. No file handle is retained.

    Raises:
        ResourceError: (kind PERFORMANCE) if the file is missing, unreadable,
            malformed, or an asynchronous (type 2) file.
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceError(ResourceKind.PERFORMANCE, path, "file not found")

    try:
        midi = mido.MidiFile(str(path))
    except (OSError, EOFError, ValueError, KeyError, IndexError, struct.error) as exc:
        raise ResourceError(ResourceKind.PERFORMANCE, path, str(exc) or type(exc).__name__) from exc

    if midi.type == 2:
        raise ResourceError(
            ResourceKind.PERFORMANCE, path,
            "asynchronous (type 2) MIDI files are not supported",
        )
    if not 0 < midi.ticks_per_beat < 0x8000:
        # SMPTE divisions set the top bit of the header field
        raise ResourceError(
            ResourceKind.PERFORMANCE, path,
            f"unsupported time division {midi.ticks_per_beat}",
        )

    events = []
    elapsed = 0.0
    try:
        for msg in midi:
            elapsed += msg.time
            if msg.type in _CHANNEL_MESSAGES:
                events.append(_to_event(msg, elapsed))
    except (ValueError, ArithmeticError) as exc:
        raise ResourceError(ResourceKind.PERFORMANCE, path, str(exc) or type(exc).__name__) from exc

    performance = Performance(
        path=path,
        events=tuple(events),
        duration_s=max(0.0, elapsed),
        ticks_per_beat=midi.ticks_per_beat,
    )
    logger.info(
        "Loaded performance %s (%.3fs, %d events)",
        path, performance.duration_s, len(performance.events),
    )
    return performance
