"""POST /api/v1/render — render a MIDI file through a SoundFont to WAV."""

from __future__ import annotations

from fastapi import APIRouter, Request

from firesynth.api.schemas import RenderRequestIn, RenderResponse
from firesynth.config import RenderRequest
from firesynth.pipeline import render

router = APIRouter()


@router.post("/render", response_model=RenderResponse)
def render_performance(request: Request, body: RenderRequestIn) -> RenderResponse:
    """Run the full render pipeline; blocks until the file is written.

    Render errors propagate to the app's exception handlers.
    """
    render_request = RenderRequest.from_inputs(
        performance_path=body.performance_path,
        bank_path=body.bank_path,
        destination_path=body.destination_path,
        sample_rate=body.sample_rate,
        effects=body.effects,
    )
    summary = render(render_request, engine_factory=request.app.state.engine_factory)

    return RenderResponse(
        destination_path=str(summary.destination_path),
        frames=summary.frames,
        sample_rate=summary.sample_rate,
        duration_s=round(summary.duration_s, 3),
    )
