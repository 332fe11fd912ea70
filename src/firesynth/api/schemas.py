"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RenderRequestIn(BaseModel):
    performance_path: str = Field(..., description="MIDI file to render")
    bank_path: str = Field(..., description="SoundFont (.sf2/.sf3) file")
    destination_path: str = Field(..., description="WAV file to create or overwrite")
    # Text is accepted so invalid values are reported as input errors.
    sample_rate: int | float | str = Field(44100, description="Output sample rate in Hz")
    effects: bool = Field(False, description="Enable reverb and chorus")


class InspectRequestIn(BaseModel):
    bank_path: str | None = None
    performance_path: str | None = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class RenderResponse(BaseModel):
    status: str = "done"
    destination_path: str
    frames: int
    sample_rate: int
    duration_s: float


class ErrorResponse(BaseModel):
    status: str = "error"
    error: str
    message: str
    kind: str | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    engine: str


class FileTypeOut(BaseModel):
    label: str
    extensions: list[str]


class DefaultsResponse(BaseModel):
    sample_rate: int
    effects: bool
    file_types: dict[str, FileTypeOut]


class PresetOut(BaseModel):
    name: str
    bank: int
    program: int
    zones: int


class ZoneOut(BaseModel):
    is_global: bool
    parameters: dict[str, int | tuple[int, int]]


class InstrumentOut(BaseModel):
    name: str
    zones: list[ZoneOut]


class BankOut(BaseModel):
    name: str
    version: str
    sound_engine: str
    presets: list[PresetOut]
    instruments: list[InstrumentOut]
    samples: int
    compressed: bool


class PerformanceOut(BaseModel):
    duration_s: float
    events: int
    notes: int
    ticks_per_beat: int


class InspectResponse(BaseModel):
    bank: BankOut | None = None
    performance: PerformanceOut | None = None
