"""Reference endpoints — front-end defaults and resource inspection."""

from __future__ import annotations

from fastapi import APIRouter

from firesynth.api.schemas import (
    BankOut,
    DefaultsResponse,
    FileTypeOut,
    InspectRequestIn,
    InspectResponse,
    InstrumentOut,
    PerformanceOut,
    PresetOut,
    ZoneOut,
)

router = APIRouter()


@router.get("/defaults", response_model=DefaultsResponse)
async def get_defaults() -> DefaultsResponse:
    """Return default render options and the file picker filters."""
    from firesynth.config import load_config

    config = load_config("render.json")
    return DefaultsResponse(
        sample_rate=config["defaults"]["sample_rate"],
        effects=config["defaults"]["effects"],
        file_types={
            key: FileTypeOut(label=ft["label"], extensions=ft["extensions"])
            for key, ft in config["file_types"].items()
        },
    )


@router.post("/inspect", response_model=InspectResponse)
def inspect_resources(body: InspectRequestIn) -> InspectResponse:
    """Load a bank and/or a performance and describe them without rendering."""
    from firesynth.bank.soundfont import load_bank
    from firesynth.performance.midi import load_performance

    bank_out = None
    if body.bank_path:
        bank = load_bank(body.bank_path)
        bank_out = BankOut(
            name=bank.name,
            version=f"{bank.version[0]}.{bank.version[1]:02d}",
            sound_engine=bank.sound_engine,
            presets=[
                PresetOut(name=p.name, bank=p.bank, program=p.program, zones=len(p.zones))
                for p in bank.presets
            ],
            instruments=[
                InstrumentOut(
                    name=inst.name,
                    zones=[
                        ZoneOut(is_global=z.is_global, parameters=z.parameters())
                        for z in inst.zones
                    ],
                )
                for inst in bank.instruments
            ],
            samples=len(bank.samples),
            compressed=bank.is_compressed,
        )

    performance_out = None
    if body.performance_path:
        performance = load_performance(body.performance_path)
        performance_out = PerformanceOut(
            duration_s=round(performance.duration_s, 3),
            events=len(performance.events),
            notes=performance.note_count,
            ticks_per_beat=performance.ticks_per_beat,
        )

    return InspectResponse(bank=bank_out, performance=performance_out)
