"""Synthesis engine binding — FluidSynth driven offline, block by block.

The sequencer talks to an engine through ``SynthesisEngine``; the default
implementation wraps pyfluidsynth without an audio driver, pulling samples
on demand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

import numpy as np

from firesynth.bank.soundfont import InstrumentBank
from firesynth.config import RenderConfig, load_config
from firesynth.errors import EngineError
from firesynth.performance.midi import ChannelEvent

logger = logging.getLogger(__name__)

DRUM_CHANNEL = 9
DRUM_BANK = 128


class SynthesisEngine(Protocol):
    """Something that turns channel events into stereo float samples."""

    sample_rate: int

    def dispatch(self, event: ChannelEvent) -> None: ...
    def render(self, left: np.ndarray, right: np.ndarray) -> None: ...  # fills in place
    def close(self) -> None: ...


EngineFactory = Callable[[InstrumentBank, RenderConfig], SynthesisEngine]


class FluidSynthEngine:
    """FluidSynth instance configured from a bank and a ``RenderConfig``.

    Reverb and chorus are switched together by ``config.effects``; gain,
    polyphony and channel count come from the ``engine`` section of
    configs/render.json.
    """

    name = "fluidsynth"

    def __init__(
        self,
        bank: InstrumentBank,
        config: RenderConfig,
        engine_settings: dict | None = None,
    ) -> None:
        settings = engine_settings or load_config()["engine"]
        low, high = settings["sample_rate_range"]
        if not low <= config.sample_rate <= high:
            raise EngineError(
                f"Sample rate {config.sample_rate} Hz is outside the engine's "
                f"supported range ({low}-{high} Hz)",
            )

        try:
            import fluidsynth
        except ImportError as exc:
            raise EngineError(f"FluidSynth is not available: {exc}") from exc

        self.sample_rate = config.sample_rate
        self.effects = config.effects
        effects_flag = 1 if config.effects else 0
        self._synth = fluidsynth.Synth(
            gain=float(settings["gain"]),
            samplerate=float(config.sample_rate),
            channels=int(settings["midi_channels"]),
            **{
                "synth.polyphony": int(settings["polyphony"]),
                "synth.reverb.active": effects_flag,
                "synth.chorus.active": effects_flag,
            },
        )

        self._sfid = self._synth.sfload(str(bank.path))
        if self._sfid == -1:
            self.close()
            raise EngineError(f"FluidSynth could not load bank {bank.path}")
        self._select_default_presets(bank, int(settings["midi_channels"]))

        self._handlers = {
            "note_on": lambda e: self._synth.noteon(e.channel, e.data1, e.data2),
            "note_off": lambda e: self._synth.noteoff(e.channel, e.data1),
            "control_change": lambda e: self._synth.cc(e.channel, e.data1, e.data2),
            "program_change": lambda e: self._synth.program_change(e.channel, e.data1),
            "pitchwheel": lambda e: self._synth.pitch_bend(e.channel, e.data1),
            "aftertouch": lambda e: self._synth.channel_pressure(e.channel, e.data1),
            "polytouch": lambda e: self._synth.key_pressure(e.channel, e.data1, e.data2),
        }
        logger.debug(
            "FluidSynth ready: %d Hz, effects=%s, bank id %d",
            self.sample_rate, self.effects, self._sfid,
        )

    def _select_default_presets(self, bank: InstrumentBank, channels: int) -> None:
        """Give every channel a preset before the first note.

        FluidSynth leaves channels without a preset after ``sfload``, so notes
        on channels that never see a program change would be silent. Channel 9
        prefers the percussion bank (128); any channel whose General MIDI
        default is missing falls back to the first preset of the bank.
        """
        fallback = bank.presets[0]
        for channel in range(channels):
            wanted = (DRUM_BANK if channel == DRUM_CHANNEL else 0, 0)
            preset = bank.find_preset(*wanted)
            if preset is None:
                preset = fallback
            self._synth.program_select(channel, self._sfid, preset.bank, preset.program)

    def dispatch(self, event: ChannelEvent) -> None:
        handler = self._handlers.get(event.kind)
        if handler is not None:
            handler(event)

    def render(self, left: np.ndarray, right: np.ndarray) -> None:
        """Render ``len(left)`` frames into ``left``/``right``.

        ``get_samples`` returns interleaved int16 [L, R, L, R, ...] produced by
        FluidSynth's dithered 16-bit writer; it is scaled to float32 in
        [-1, 1), so the float output carries 16-bit resolution.
        """
        n = len(left)
        if n == 0:
            return
        raw = np.asarray(self._synth.get_samples(n), dtype=np.int16)
        frames = raw.reshape(n, 2).astype(np.float32) / 32768.0
        left[:] = frames[:, 0]
        right[:] = frames[:, 1]

    def close(self) -> None:
        synth, self._synth = getattr(self, "_synth", None), None
        if synth is not None:
            synth.delete()


def create_engine(bank: InstrumentBank, config: RenderConfig) -> SynthesisEngine:
    """Default engine factory."""
    return FluidSynthEngine(bank, config)
