"""Shared test fixtures for tempo and waveform tests."""

import numpy as np
import pytest
from fastapi.testclient import TestClient

from beatwave.analysis.models import SampleBuffer
from beatwave.audio.decoder import DecodeError
from beatwave.main import app


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def generate_click_track(
    bpm: float,
    duration_seconds: float = 30.0,
    sr: int = 44800,
    click_ms: float = 20.0,
) -> np.ndarray:
    """Generate a synthetic click track with half-wave rectified clicks.

    At the default 44800 Hz with hop 512, 175 BPM is exactly 30 frames per
    beat. Returns mono audio peaking at 1.0.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    period = 60.0 / bpm * sr  # samples per beat
    click_samples = int(click_ms / 1000.0 * sr)

    # Short sine burst with exponential decay, negative half removed
    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 100)
    click = np.maximum(click, 0.0)

    for k in range(int(n_samples / period) + 1):
        start = int(round(k * period))
        end = min(start + click_samples, n_samples)
        if end > start:
            audio[start:end] += click[:end - start]

    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak
    return audio.astype(np.float32)


class FakeDecoder:
    """In-memory decoder over a fixed sample array."""

    def __init__(
        self,
        samples: np.ndarray | None = None,
        sample_rate: int = 44800,
        fail: bool = False,
        block_size: int = 1152,
    ):
        self.samples = np.zeros(0, dtype=np.float32) if samples is None else np.asarray(samples, dtype=np.float32)
        self.sample_rate = sample_rate
        self.fail = fail
        self.block_size = block_size
        self.decode_calls: list[float] = []
        self.probes: list[float] = []
        self.batches = 0

    def decode(self, path, max_duration_seconds):
        if self.fail:
            raise DecodeError(f"cannot decode {path}")
        self.decode_calls.append(max_duration_seconds)
        limit = int(max_duration_seconds * self.sample_rate)
        return SampleBuffer(samples=self.samples[:limit], sample_rate=self.sample_rate)

    def probe_peak_at(self, path, timestamp, max_frames):
        if self.fail:
            raise DecodeError(f"cannot probe {path}")
        self.probes.append(timestamp)
        start = int(round(timestamp * self.sample_rate))
        block = self.samples[start:start + self.block_size * max_frames]
        if block.size == 0:
            return 0.0
        return float(np.max(np.abs(block)))

    def probe_peaks(self, path, timestamps, max_frames):
        self.batches += 1
        return [self.probe_peak_at(path, float(t), max_frames) for t in timestamps]

    def duration(self, path):
        if self.fail:
            raise DecodeError(f"cannot read {path}")
        return len(self.samples) / self.sample_rate


@pytest.fixture
def click_175():
    """30 s click track at 175 BPM, 44800 Hz."""
    return generate_click_track(bpm=175)


@pytest.fixture
def click_87_5():
    """30 s half-time click track at 87.5 BPM, 44800 Hz."""
    return generate_click_track(bpm=87.5)
