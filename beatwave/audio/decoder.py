"""Audio decoding behind a narrow interface.

The analysis pipelines only ever see a :class:`Decoder`. The default
implementation reads 16-bit PCM through soundfile; tests substitute an
in-memory decoder fed with synthetic buffers.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Union

import numpy as np
import soundfile as sf

from beatwave.analysis.models import SampleBuffer

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# int16 full scale
_PCM16_SCALE = 32768.0


class DecodeError(Exception):
    """Raised when a source cannot be decoded (missing, unsupported, I/O)."""


class Decoder(Protocol):
    def decode(self, path: PathLike, max_duration_seconds: float) -> SampleBuffer: ...

    def probe_peak_at(self, path: PathLike, timestamp: float, max_frames: int) -> float: ...

    def probe_peaks(self, path: PathLike, timestamps, max_frames: int) -> list[float]: ...

    def duration(self, path: PathLike) -> float: ...


def pcm16_to_float(data: np.ndarray) -> np.ndarray:
    """Map int16 PCM to [-1, 1] and flatten channels in interleaved order."""
    return (np.asarray(data, dtype=np.int16).reshape(-1) / _PCM16_SCALE).astype(np.float32)


class SoundFileDecoder:
    """Decoder backed by libsndfile (WAV, FLAC, OGG, MP3 on recent builds).

    Multi-channel files are not mixed down: interleaved values are handed to
    the analysis as independent samples.
    """

    def __init__(self, block_size: int = 1152):
        self.block_size = block_size

    def decode(self, path: PathLike, max_duration_seconds: float = 30.0) -> SampleBuffer:
        """Decode up to *max_duration_seconds* of audio from the start of *path*.

        Parameters
        ----------
        path:
            Audio file on disk.
        max_duration_seconds:
            Cap on decoded audio, bounding analysis cost.

        Returns
        -------
        SampleBuffer
            Normalized samples and the file's native sample rate.
        """
        try:
            with sf.SoundFile(str(path)) as f:
                sr = f.samplerate
                frames = int(max_duration_seconds * sr)
                if f.frames > 0:
                    frames = min(frames, f.frames)
                data = f.read(frames=frames, dtype="int16", always_2d=True)
        except (sf.SoundFileError, RuntimeError, OSError) as e:
            raise DecodeError(f"Cannot decode {path}: {e}") from e

        samples = pcm16_to_float(data)
        logger.debug("Decoded %d samples at %d Hz from %s", len(samples), sr, path)
        return SampleBuffer(samples=samples, sample_rate=sr)

    def probe_peak_at(self, path: PathLike, timestamp: float, max_frames: int = 3) -> float:
        """Return the peak absolute sample of up to *max_frames* blocks at *timestamp*.

        Seeks to the nearest sample frame; reading past the end yields 0.0.
        """
        try:
            with sf.SoundFile(str(path)) as f:
                return self._probe(f, timestamp, max_frames)
        except (sf.SoundFileError, RuntimeError, OSError) as e:
            raise DecodeError(f"Cannot probe {path} at {timestamp:.3f}s: {e}") from e

    def probe_peaks(self, path: PathLike, timestamps, max_frames: int = 3) -> list[float]:
        """Probe every timestamp through one open handle, seeking between reads."""
        try:
            with sf.SoundFile(str(path)) as f:
                return [self._probe(f, float(t), max_frames) for t in timestamps]
        except (sf.SoundFileError, RuntimeError, OSError) as e:
            raise DecodeError(f"Cannot probe {path}: {e}") from e

    def duration(self, path: PathLike) -> float:
        try:
            info = sf.info(str(path))
        except (sf.SoundFileError, RuntimeError, OSError) as e:
            raise DecodeError(f"Cannot read {path}: {e}") from e
        return float(info.duration)

    def _probe(self, f: sf.SoundFile, timestamp: float, max_frames: int) -> float:
        position = int(round(max(timestamp, 0.0) * f.samplerate))
        if f.frames > 0 and position >= f.frames:
            return 0.0
        f.seek(position)
        data = f.read(frames=self.block_size * max(max_frames, 1), dtype="int16", always_2d=True)
        if data.size == 0:
            return 0.0
        return float(np.max(np.abs(pcm16_to_float(data))))
