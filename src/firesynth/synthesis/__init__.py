"""Synthesis — engine binding and timeline sequencing."""

from firesynth.synthesis.engine import (
    EngineFactory,
    FluidSynthEngine,
    SynthesisEngine,
    create_engine,
)
from firesynth.synthesis.sequencer import Sequencer, seconds_to_frames

__all__ = [
    "EngineFactory",
    "FluidSynthEngine",
    "Sequencer",
    "SynthesisEngine",
    "create_engine",
    "seconds_to_frames",
]
