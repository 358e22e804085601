"""Application configuration."""

from pydantic_settings import BaseSettings

from beatwave.analysis.models import WaveformStrategy


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Tempo search band
    min_bpm: float = 160.0
    max_bpm: float = 190.0
    default_bpm: float = 175.0
    max_analysis_seconds: float = 30.0  # decoded audio cap for tempo analysis

    # Onset envelope
    frame_size: int = 2048
    hop_length: int = 512
    mean_window: int = 16  # frames, moving average before rectification

    # Autocorrelation / harmonic scoring
    max_autocorr_lag: int = 1000
    max_harmonics: int = 8
    autocorr_method: str = "auto"  # "direct" | "fft" | "auto"

    # Octave-error correction
    half_time_below_bpm: float = 100.0
    half_time_support: float = 0.4
    double_time_above_bpm: float = 185.0
    double_time_min_bpm: float = 80.0
    double_time_max_bpm: float = 95.0
    double_time_support: float = 0.8

    # Waveform
    waveform_points: int = 500
    waveform_strategy: WaveformStrategy = WaveformStrategy.AUTO
    waveform_probe_count: int = 500
    waveform_probe_frames: int = 3
    probe_block_size: int = 1152  # sample frames per decoded probe block
    full_decode_max_seconds: float = 60.0
    waveform_max_decode_seconds: float = 900.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50

    model_config = {"env_prefix": "BEATWAVE_"}


settings = Settings()
