"""Peak-preserving waveform profiles for display.

Two interchangeable strategies produce the same kind of profile:

- full decode: every sample is read and reduced window by window;
- sparse probe: the decoder is asked for the peak at evenly spaced
  timestamps, which keeps extraction time nearly independent of track length.

Both return ``None`` when there is no data, so callers can tell a failed
extraction from silent audio (an all-zero profile).
"""

import logging

import numpy as np

from beatwave.analysis.models import SampleBuffer, WaveformStrategy
from beatwave.audio.decoder import Decoder, DecodeError, PathLike

logger = logging.getLogger(__name__)


def downsample_peaks(samples: np.ndarray, target_points: int) -> np.ndarray:
    """Reduce *samples* to *target_points* signed peaks.

    Each window of ``len(samples) // target_points`` samples is replaced by
    its largest positive or most negative value, whichever has the larger
    magnitude (ties go to the negative side). Samples past the last full
    window are dropped. Inputs no longer than *target_points* are returned
    as-is.
    """
    x = np.asarray(samples, dtype=np.float32)
    n = len(x)
    if n <= target_points:
        return np.clip(x, -1.0, 1.0)

    window = n // target_points
    blocks = x[:window * target_points].reshape(target_points, window)
    pos = np.maximum(blocks.max(axis=1), 0.0)
    neg = np.minimum(blocks.min(axis=1), 0.0)
    peaks = np.where(np.abs(pos) > np.abs(neg), pos, neg)
    return np.clip(peaks, -1.0, 1.0).astype(np.float32)


def sample_full(buffer: SampleBuffer | None, target_points: int) -> np.ndarray | None:
    """Full-decode strategy: downsample an already decoded buffer."""
    if buffer is None or len(buffer) == 0 or target_points <= 0:
        return None
    return downsample_peaks(buffer.samples, target_points)


def probe_timestamps(duration: float, probe_count: int) -> np.ndarray:
    """Evenly spaced probe times ``k * duration / probe_count``."""
    if duration <= 0 or probe_count <= 0:
        return np.zeros(0, dtype=np.float64)
    interval = duration / probe_count
    return np.arange(probe_count) * interval


def sample_sparse(
    decoder: Decoder,
    path: PathLike,
    target_points: int,
    probe_count: int = 500,
    max_frames: int = 3,
) -> np.ndarray | None:
    """Sparse-probe strategy: peak magnitudes at evenly spaced seek points.

    Probe values are unsigned (peak absolute amplitude). The probe set is
    reduced with :func:`downsample_peaks` when *target_points* is smaller.
    """
    if target_points <= 0:
        return None
    try:
        duration = decoder.duration(path)
        timestamps = probe_timestamps(duration, probe_count)
        if timestamps.size == 0:
            logger.warning(f"No probe positions for {path} (duration {duration:.2f}s)")
            return None

        peaks = decoder.probe_peaks(path, timestamps, max_frames)
    except DecodeError as e:
        logger.warning(f"Waveform probing failed: {e}")
        return None

    logger.debug(f"Probed {len(peaks)} positions across {duration:.1f}s")
    return downsample_peaks(np.asarray(peaks, dtype=np.float32), target_points)


def choose_strategy(
    strategy: WaveformStrategy | str,
    duration: float,
    full_decode_max_seconds: float = 60.0,
) -> WaveformStrategy:
    """Resolve ``auto``: full decode for short tracks, sparse probing beyond."""
    strategy = WaveformStrategy(strategy)
    if strategy is not WaveformStrategy.AUTO:
        return strategy
    if duration <= full_decode_max_seconds:
        return WaveformStrategy.FULL
    return WaveformStrategy.SPARSE
