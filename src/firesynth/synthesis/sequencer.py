"""Sequencer — drive an engine across a performance timeline into buffers."""

from __future__ import annotations

import logging

import numpy as np

from firesynth.performance.midi import ChannelEvent, Performance
from firesynth.synthesis.engine import SynthesisEngine

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_FRAMES = 64


def seconds_to_frames(seconds: float, sample_rate: int) -> int:
    """Round a time to the nearest frame (halves round up)."""
    return int(np.floor(seconds * sample_rate + 0.5))


class Sequencer:
    """Plays a ``Performance`` on an engine with sample-accurate event dispatch.

    Every event due at or before the current frame is dispatched before the
    next block is rendered, and a block never crosses the frame of a
    pending event.
    """

    def __init__(self, engine: SynthesisEngine, block_frames: int = DEFAULT_BLOCK_FRAMES) -> None:
        if block_frames <= 0:
            raise ValueError(f"block_frames must be positive, got {block_frames}")
        self.engine = engine
        self.block_frames = block_frames
        self._events: list[tuple[int, ChannelEvent]] = []
        self._loop = False
        self._loop_frames = 0
        self._index = 0
        self._offset = 0
        self._frame = 0

    @property
    def position_frames(self) -> int:
        """Frames rendered since ``play``."""
        return self._frame

    def play(self, performance: Performance, loop: bool = False) -> None:
        """Start the timeline at frame 0."""
        sr = self.engine.sample_rate
        self._events = [(seconds_to_frames(e.time_s, sr), e) for e in performance.events]
        self._loop_frames = seconds_to_frames(performance.duration_s, sr)
        # A zero-length timeline cannot wrap.
        self._loop = loop and self._loop_frames > 0
        self._index = 0
        self._offset = 0
        self._frame = 0

    def _next_event_frame(self) -> int | None:
        if self._index < len(self._events):
            return self._offset + self._events[self._index][0]
        if self._loop:
            return self._offset + self._loop_frames
        return None

    def _dispatch_due(self) -> None:
        while True:
            if self._index >= len(self._events):
                if not self._loop or self._frame < self._offset + self._loop_frames:
                    return
                self._offset += self._loop_frames
                self._index = 0
                continue
            frame, event = self._events[self._index]
            if self._offset + frame > self._frame:
                return
            self.engine.dispatch(event)
            self._index += 1

    def render(self, left: np.ndarray, right: np.ndarray) -> int:
        """Fill both buffers completely; return the number of frames written.

        Anything still sounding when the buffers are full is cut off.
        """
        if len(left) != len(right):
            raise ValueError(
                f"channel buffers differ in length ({len(left)} != {len(right)})",
            )

        total = len(left)
        written = 0
        while written < total:
            self._dispatch_due()
            n = min(self.block_frames, total - written)
            next_frame = self._next_event_frame()
            if next_frame is not None:
                n = min(n, next_frame - self._frame)
            self.engine.render(left[written:written + n], right[written:written + n])
            written += n
            self._frame += n

        logger.debug("Rendered %d frames", written)
        return written
