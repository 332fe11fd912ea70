"""FireSynth — FastAPI application serving the render API and web UI."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from firesynth import __version__
from firesynth.api.routes import health, reference, render
from firesynth.api.schemas import ErrorResponse
from firesynth.errors import (
    EngineError,
    InputError,
    OutputError,
    RenderError,
    ResourceError,
)
from firesynth.synthesis.engine import EngineFactory, create_engine

logger = logging.getLogger(__name__)

_WEB_DIR = Path(__file__).resolve().parents[1] / "web"

_STATUS_CODES: dict[type[RenderError], int] = {
    InputError: 400,
    ResourceError: 422,
    EngineError: 422,
    OutputError: 500,
}


async def render_error_handler(request: Request, exc: RenderError) -> JSONResponse:
    status_code = _STATUS_CODES.get(type(exc), 500)
    body = ErrorResponse(**exc.to_dict())
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report any fault that escaped the pipeline as a single message."""
    logger.exception("Unexpected failure handling %s", request.url.path)
    body = ErrorResponse(error="internal", message=f"{type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def create_app(engine_factory: EngineFactory | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        engine_factory: Synthesis engine used by /render (default FluidSynth).
    """
    app = FastAPI(
        title="FireSynth",
        description="Offline MIDI + SoundFont renderer",
        version=__version__,
    )
    app.state.engine_factory = engine_factory or create_engine

    app.add_exception_handler(RenderError, render_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(reference.router, prefix="/api/v1", tags=["reference"])
    app.include_router(render.router, prefix="/api/v1", tags=["render"])

    # Mounted after the routers so /api/v1 paths resolve first
    if _WEB_DIR.exists():
        app.mount("/", StaticFiles(directory=str(_WEB_DIR), html=True), name="web")

    return app


app = create_app()


def serve(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Run the API and web UI with uvicorn."""
    import uvicorn

    uvicorn.run("firesynth.api.main:app", host=host, port=port)
