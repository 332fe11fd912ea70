"""Render pipeline — MIDI performance + SoundFont bank -> stereo float WAV.

Pipeline: validate request -> load bank -> load performance -> build engine
-> allocate buffers -> sequence + render -> encode.

Every stage failure raises a ``RenderError`` subclass and aborts the run;
the destination file is only replaced once the complete container has been
written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from firesynth.audio.wav import save_wav
from firesynth.bank.soundfont import load_bank
from firesynth.config import RenderRequest, load_config
from firesynth.errors import EngineError, RenderError
from firesynth.performance.midi import load_performance
from firesynth.synthesis.engine import EngineFactory, create_engine
from firesynth.synthesis.sequencer import Sequencer, seconds_to_frames

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderSummary:
    """What a finished render produced, for display by a front end."""

    destination_path: Path
    frames: int
    sample_rate: int
    duration_s: float


def buffer_length(sample_rate: int, duration_s: float) -> int:
    """Frames needed to hold ``duration_s`` seconds at ``sample_rate``."""
    return seconds_to_frames(duration_s, sample_rate)


def render(
    request: RenderRequest,
    engine_factory: EngineFactory | None = None,
    block_frames: int | None = None,
) -> RenderSummary:
    """Render a MIDI performance through a SoundFont into a WAV file.

    Args:
        request: The five render inputs.
        engine_factory: Builds the synthesis engine from (bank, config);
            defaults to FluidSynth.
        block_frames: Maximum frames rendered per engine call (default from
            configs/render.json).

    Returns:
        A ``RenderSummary`` of the written file.

    Raises:
        InputError: invalid sample rate (raised before any file I/O).
        ResourceError: missing or malformed bank / performance.
        EngineError: engine could not be built from the bank and config.
        OutputError: destination could not be written.
    """
    # --- 1. Validate options before touching any file ---
    config = request.render_config()
    factory = engine_factory or create_engine
    if block_frames is None:
        block_frames = load_config()["engine"]["block_frames"]

    # --- 2. Load resources ---
    bank = load_bank(request.bank_path)
    performance = load_performance(request.performance_path)

    # --- 3. Build the engine ---
    try:
        engine = factory(bank, config)
    except RenderError:
        raise
    except Exception as exc:
        raise EngineError(f"Synthesis engine could not be created: {exc}") from exc

    # --- 4-6. Allocate and render ---
    try:
        n_frames = buffer_length(config.sample_rate, performance.duration_s)
        left = np.zeros(n_frames, dtype=np.float32)
        right = np.zeros(n_frames, dtype=np.float32)

        sequencer = Sequencer(engine, block_frames=block_frames)
        sequencer.play(performance, loop=False)
        written = sequencer.render(left, right)
    finally:
        engine.close()

    logger.info(
        "Rendered %s with %s: %d frames at %d Hz (effects %s)",
        request.performance_path.name, request.bank_path.name,
        written, config.sample_rate, "on" if config.effects else "off",
    )

    # --- 7-8. Encode ---
    save_wav(left, right, request.destination_path, sr=config.sample_rate)

    return RenderSummary(
        destination_path=request.destination_path,
        frames=written,
        sample_rate=config.sample_rate,
        duration_s=performance.duration_s,
    )
