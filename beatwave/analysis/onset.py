"""Onset strength envelope and half-wave rectification."""

import numpy as np
import librosa


def onset_strength(
    samples: np.ndarray,
    frame_size: int = 2048,
    hop_length: int = 512,
) -> np.ndarray:
    """RMS energy per frame, used as a cheap onset-strength proxy.

    Returns one value per full frame: ``(N - frame_size) // hop_length + 1``
    values, or an empty array when the input is shorter than one frame.
    """
    y = np.asarray(samples, dtype=np.float64)
    if len(y) < frame_size:
        return np.zeros(0, dtype=np.float64)

    rms = librosa.feature.rms(
        y=y,
        frame_length=frame_size,
        hop_length=hop_length,
        center=False,
        dtype=np.float64,
    )
    return rms[0]


def moving_average(signal: np.ndarray, window: int = 16) -> np.ndarray:
    """Centered moving average whose window shrinks at the edges.

    Point ``i`` averages ``signal[max(0, i - window//2) : min(n, i + window//2 + 1)]``.
    """
    x = np.asarray(signal, dtype=np.float64)
    n = len(x)
    if n == 0:
        return np.zeros(0, dtype=np.float64)

    half = window // 2
    idx = np.arange(n)
    start = np.maximum(0, idx - half)
    end = np.minimum(n, idx + half + 1)

    csum = np.concatenate(([0.0], np.cumsum(x)))
    counts = end - start  # always >= 1
    return (csum[end] - csum[start]) / counts


def rectify(envelope: np.ndarray, window: int = 16) -> np.ndarray:
    """Half-wave rectify the envelope against its local mean.

    Keeps only energy surges above the slowly varying background loudness.
    """
    x = np.asarray(envelope, dtype=np.float64)
    if len(x) == 0:
        return np.zeros(0, dtype=np.float64)
    return np.maximum(0.0, x - moving_average(x, window))
