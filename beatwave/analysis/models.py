"""Core data models for tempo and waveform analysis."""

import enum
from dataclasses import dataclass

import numpy as np


class WaveformStrategy(str, enum.Enum):
    """How a waveform profile is extracted."""
    FULL = "full"  # decode every sample
    SPARSE = "sparse"  # peak probes at evenly spaced seek points
    AUTO = "auto"  # full for short tracks, sparse beyond


@dataclass(frozen=True)
class SampleBuffer:
    """Decoded PCM samples normalized to [-1.0, 1.0]."""
    samples: np.ndarray
    sample_rate: int  # Hz

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True)
class TempoCandidate:
    """A candidate beat period and its multi-harmonic score."""
    lag: int  # frames
    score: float


@dataclass(frozen=True)
class Track:
    """An analyzed track."""
    name: str
    path: str
    bpm: float
