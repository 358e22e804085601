"""Pydantic response models for API."""

from pydantic import BaseModel


class AnalysisResponse(BaseModel):
    name: str
    bpm: float
    waveform: list[float] | None = None  # None when extraction failed
    points: int = 0


class SettingsResponse(BaseModel):
    min_bpm: float
    max_bpm: float
    default_bpm: float
    waveform_points: int
    waveform_strategy: str
    max_upload_mb: int
