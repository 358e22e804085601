"""File upload endpoint for track analysis."""

import logging
import os
import tempfile

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from beatwave.analysis.engine import AnalysisEngine
from beatwave.api.schemas import AnalysisResponse
from beatwave.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".aiff", ".aif"}


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(
    file: UploadFile = File(...),
    points: int | None = Query(default=None, ge=1, le=20000),
):
    """Detect tempo and extract a waveform profile from an uploaded file."""
    suffix = ""
    if file.filename and "." in file.filename:
        suffix = "." + file.filename.rsplit(".", 1)[-1].lower()
        if suffix not in ALLOWED_EXTENSIONS:
            raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name

        engine = AnalysisEngine()
        track, profile = await run_in_threadpool(
            engine.analyze_track, tmp_path, file.filename or "upload", points,
        )
    except Exception:
        logger.exception("Upload analysis failed")
        raise HTTPException(500, "Analysis failed")
    finally:
        if tmp_path:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass

    return AnalysisResponse(
        name=track.name,
        bpm=track.bpm,
        waveform=profile.tolist() if profile is not None else None,
        points=len(profile) if profile is not None else 0,
    )
