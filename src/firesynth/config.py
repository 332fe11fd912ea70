"""Render configuration — JSON config loading and request value objects."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path

from firesynth.errors import InputError

_CONFIGS_DIR = Path(__file__).resolve().parent / "configs"

DEFAULT_SAMPLE_RATE = 44100


def load_config(config_name: str = "render.json") -> dict:
    """Load a JSON config file from the configs/ directory."""
    config_path = _CONFIGS_DIR / config_name
    with open(config_path) as f:
        return json.load(f)


def parse_sample_rate(value: int | float | str) -> int:
    """Validate a sample rate given as an int or as numeric text.

    Raises:
        InputError: if the value is not a positive integer.
    """
    if isinstance(value, bool):
        raise InputError(f"Sample rate must be a positive integer, got {value!r}")

    if isinstance(value, str):
        text = value.strip()
        try:
            number = float(text)
        except ValueError:
            raise InputError(
                f"Sample rate must be a positive integer, got {value!r}",
            ) from None
    elif isinstance(value, (int, float)):
        number = value
    else:
        raise InputError(f"Sample rate must be a positive integer, got {value!r}")

    if not math.isfinite(number):
        raise InputError(f"Sample rate must be a positive integer, got {value!r}")
    if number != int(number):
        raise InputError(f"Sample rate must be a whole number of Hz, got {value!r}")
    if number <= 0:
        raise InputError(f"Sample rate must be positive, got {value!r}")

    return int(number)


@dataclass(frozen=True)
class RenderConfig:
    """Engine-facing render options.

    Attributes:
        sample_rate: Output sample rate in Hz.
        effects: Whether reverb and chorus are enabled.
    """

    sample_rate: int = DEFAULT_SAMPLE_RATE
    effects: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.sample_rate, bool) or not isinstance(self.sample_rate, int):
            raise InputError(
                f"Sample rate must be a positive integer, got {self.sample_rate!r}",
            )
        if self.sample_rate <= 0:
            raise InputError(f"Sample rate must be positive, got {self.sample_rate}")


@dataclass(frozen=True)
class RenderRequest:
    """The five inputs of one render call.

    Attributes:
        performance_path: MIDI file to render.
        bank_path: SoundFont providing the instruments.
        destination_path: WAV file to create or overwrite.
        sample_rate: Output sample rate in Hz.
        effects: Whether reverb and chorus are enabled.
    """

    performance_path: Path
    bank_path: Path
    destination_path: Path
    sample_rate: int = DEFAULT_SAMPLE_RATE
    effects: bool = False

    @classmethod
    def from_inputs(
        cls,
        performance_path: str | Path,
        bank_path: str | Path,
        destination_path: str | Path,
        sample_rate: int | str = DEFAULT_SAMPLE_RATE,
        effects: bool = False,
    ) -> RenderRequest:
        """Build a request from raw front-end values, parsing the sample rate."""
        return cls(
            performance_path=Path(performance_path),
            bank_path=Path(bank_path),
            destination_path=Path(destination_path),
            sample_rate=parse_sample_rate(sample_rate),
            effects=bool(effects),
        )

    def render_config(self) -> RenderConfig:
        return RenderConfig(sample_rate=self.sample_rate, effects=self.effects)
