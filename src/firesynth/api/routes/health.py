"""GET /api/v1/health — server health check."""

from __future__ import annotations

from fastapi import APIRouter

from firesynth import __version__
from firesynth.api.schemas import HealthResponse
from firesynth.synthesis.engine import FluidSynthEngine

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        engine=FluidSynthEngine.name,
    )
