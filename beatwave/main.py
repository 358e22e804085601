"""HTTP entry point: health, analysis settings and track upload."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beatwave.api.schemas import SettingsResponse
from beatwave.api.upload import router as upload_router
from beatwave.config import settings


def create_app() -> FastAPI:
    """Build the API application around the shared ``settings``."""
    application = FastAPI(title="Beatwave", version="0.1.0")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    application.include_router(upload_router, prefix="/api")

    @application.get("/api/health")
    async def health():
        return {"status": "ok"}

    @application.get("/api/settings", response_model=SettingsResponse)
    async def analysis_settings():
        """Tempo band and waveform policy a client should expect."""
        return SettingsResponse(
            min_bpm=settings.min_bpm,
            max_bpm=settings.max_bpm,
            default_bpm=settings.default_bpm,
            waveform_points=settings.waveform_points,
            waveform_strategy=settings.waveform_strategy.value,
            max_upload_mb=settings.max_upload_mb,
        )

    return application


app = create_app()


def run():
    import uvicorn
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port)
