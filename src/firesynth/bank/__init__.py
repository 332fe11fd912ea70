"""Instrument bank (SoundFont) loading."""

from firesynth.bank.soundfont import (
    GENERATOR_NAMES,
    Generator,
    Instrument,
    InstrumentBank,
    Preset,
    SampleHeader,
    Zone,
    load_bank,
)

__all__ = [
    "GENERATOR_NAMES",
    "Generator",
    "Instrument",
    "InstrumentBank",
    "Preset",
    "SampleHeader",
    "Zone",
    "load_bank",
]
