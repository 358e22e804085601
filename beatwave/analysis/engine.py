"""Analysis orchestrator - tempo detection and waveform extraction."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from beatwave.analysis.autocorrelation import autocorrelate
from beatwave.analysis.models import SampleBuffer, Track, WaveformStrategy
from beatwave.analysis.onset import onset_strength, rectify
from beatwave.analysis.tempo import estimate_tempo
from beatwave.analysis.waveform import choose_strategy, sample_full, sample_sparse
from beatwave.audio.decoder import Decoder, DecodeError, PathLike, SoundFileDecoder
from beatwave.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class AnalysisEngine:
    """Runs the tempo and waveform pipelines against a decoder.

    Neither public entry point raises: decode failures and degenerate input
    degrade to ``config.default_bpm`` for tempo and ``None`` for waveforms.
    """

    def __init__(self, decoder: Decoder | None = None, config: Settings | None = None):
        self.config = config or default_settings
        self.decoder = decoder or SoundFileDecoder(block_size=self.config.probe_block_size)

    def detect_tempo(self, path: PathLike) -> float:
        """Estimate the tempo of the first ``max_analysis_seconds`` of *path*."""
        cfg = self.config
        logger.info(f"Detecting tempo for {path}")
        try:
            buffer = self.decoder.decode(path, cfg.max_analysis_seconds)
        except DecodeError as e:
            logger.warning(f"Decode failed, using default {cfg.default_bpm} BPM: {e}")
            return cfg.default_bpm
        except Exception:
            logger.exception(f"Unexpected decoder failure for {path}")
            return cfg.default_bpm

        bpm = self.estimate_bpm(buffer)
        logger.info(f"  Tempo: {bpm:.1f} BPM")
        return bpm

    def estimate_bpm(self, buffer: SampleBuffer | None) -> float:
        """Run the tempo pipeline on an already decoded buffer."""
        cfg = self.config
        if buffer is None or len(buffer) == 0:
            logger.warning(f"Empty audio buffer, using default {cfg.default_bpm} BPM")
            return cfg.default_bpm

        try:
            logger.info(f"Analyzing {buffer.duration:.1f}s of audio at {buffer.sample_rate}Hz")

            logger.info("Step 1: Onset strength")
            envelope = onset_strength(buffer.samples, cfg.frame_size, cfg.hop_length)
            if len(envelope) == 0:
                logger.warning(
                    f"Audio shorter than one {cfg.frame_size}-sample frame, "
                    f"using default {cfg.default_bpm} BPM"
                )
                return cfg.default_bpm

            logger.info("Step 2: Half-wave rectification")
            rectified = rectify(envelope, cfg.mean_window)

            logger.info("Step 3: Autocorrelation")
            autocorr = autocorrelate(rectified, cfg.max_autocorr_lag, cfg.autocorr_method)

            logger.info("Step 4: Multi-harmonic tempo scoring")
            return estimate_tempo(
                autocorr,
                buffer.sample_rate,
                hop_length=cfg.hop_length,
                min_bpm=cfg.min_bpm,
                max_bpm=cfg.max_bpm,
                max_harmonics=cfg.max_harmonics,
                default_bpm=cfg.default_bpm,
                half_time_below_bpm=cfg.half_time_below_bpm,
                half_time_support=cfg.half_time_support,
                double_time_above_bpm=cfg.double_time_above_bpm,
                double_time_min_bpm=cfg.double_time_min_bpm,
                double_time_max_bpm=cfg.double_time_max_bpm,
                double_time_support=cfg.double_time_support,
            )
        except Exception:
            logger.exception("Tempo estimation failed")
            return cfg.default_bpm

    def extract_waveform(
        self,
        path: PathLike,
        target_points: int | None = None,
        strategy: WaveformStrategy | str | None = None,
    ) -> np.ndarray | None:
        """Return a display profile of *path*, or ``None`` if extraction failed."""
        cfg = self.config
        if target_points is None:
            target_points = cfg.waveform_points
        if target_points <= 0:
            logger.warning(f"No waveform requested for {path} ({target_points} points)")
            return None

        try:
            requested = WaveformStrategy(strategy or cfg.waveform_strategy)
            duration = 0.0
            if requested is WaveformStrategy.AUTO:
                duration = self.decoder.duration(path)
            chosen = choose_strategy(requested, duration, cfg.full_decode_max_seconds)
            logger.info(f"Extracting {target_points}-point waveform for {path} ({chosen.value})")

            if chosen is WaveformStrategy.SPARSE:
                profile = sample_sparse(
                    self.decoder,
                    path,
                    target_points,
                    probe_count=cfg.waveform_probe_count,
                    max_frames=cfg.waveform_probe_frames,
                )
            else:
                buffer = self.decoder.decode(path, cfg.waveform_max_decode_seconds)
                profile = sample_full(buffer, target_points)
        except DecodeError as e:
            logger.warning(f"Waveform extraction failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Waveform extraction rejected: {e}")
            return None
        except Exception:
            logger.exception(f"Unexpected waveform failure for {path}")
            return None

        if profile is None:
            logger.warning(f"No waveform data for {path}")
        else:
            logger.info(f"  Waveform: {len(profile)} points")
        return profile

    def analyze_track(
        self,
        path: PathLike,
        name: str | None = None,
        target_points: int | None = None,
    ) -> tuple[Track, np.ndarray | None]:
        """Detect tempo and extract the waveform concurrently."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            tempo_future = pool.submit(self.detect_tempo, path)
            waveform_future = pool.submit(self.extract_waveform, path, target_points)
            bpm = tempo_future.result()
            profile = waveform_future.result()

        track = Track(name=name or Path(path).name, path=str(path), bpm=bpm)
        return track, profile
