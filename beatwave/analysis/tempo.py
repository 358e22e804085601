"""Band-limited tempo estimation from an onset autocorrelogram.

Candidate beat periods (lags, in envelope frames) are restricted to the band
implied by ``[min_bpm, max_bpm]``. Each lag is scored by the mean
autocorrelation at its first ``max_harmonics`` integer multiples, so periods
whose multiples also repeat win over isolated peaks. The best lag is converted
to BPM, checked for half-time / double-time errors and clamped into the band.

Ranking uses a stable sort on descending score. Candidates are generated in
ascending lag order, so equal scores resolve to the lower lag (faster tempo).
"""

import logging
import math

import numpy as np

from beatwave.analysis.models import TempoCandidate

logger = logging.getLogger(__name__)

DEFAULT_BPM = 175.0


def lag_band(
    sample_rate: int,
    hop_length: int = 512,
    min_bpm: float = 160.0,
    max_bpm: float = 190.0,
    n_lags: int | None = None,
) -> tuple[int, int]:
    """Inclusive lag range for the BPM band. Faster tempo means shorter lag.

    When *n_lags* is given the range is clamped to ``[1, n_lags - 1]``; the
    result may then be empty (``lo > hi``).
    """
    frames_per_second = sample_rate / hop_length
    lo = int((60.0 / max_bpm) * frames_per_second)
    hi = int((60.0 / min_bpm) * frames_per_second)
    lo = max(1, lo)
    if n_lags is not None:
        hi = min(n_lags - 1, hi)
    return lo, hi


def lag_to_bpm(lag: float, sample_rate: int, hop_length: int = 512) -> float:
    """Convert a period in envelope frames to beats per minute."""
    return 60.0 / (lag * hop_length / sample_rate)


def harmonic_score(autocorr: np.ndarray, lag: int, max_harmonics: int = 8) -> float:
    """Mean autocorrelation at ``lag, 2*lag, ... max_harmonics*lag`` within range."""
    harmonics = lag * np.arange(1, max_harmonics + 1)
    harmonics = harmonics[harmonics < len(autocorr)]
    if harmonics.size == 0:
        return 0.0
    return float(np.mean(autocorr[harmonics]))


def score_candidates(
    autocorr: np.ndarray,
    sample_rate: int,
    hop_length: int = 512,
    min_bpm: float = 160.0,
    max_bpm: float = 190.0,
    max_harmonics: int = 8,
) -> list[TempoCandidate]:
    """Score every lag in the band, in ascending lag order."""
    lo, hi = lag_band(sample_rate, hop_length, min_bpm, max_bpm, n_lags=len(autocorr))
    return [
        TempoCandidate(lag=lag, score=harmonic_score(autocorr, lag, max_harmonics))
        for lag in range(lo, hi + 1)
    ]


def rank_candidates(candidates: list[TempoCandidate]) -> list[TempoCandidate]:
    """Sort by descending score; stable, so ties keep their incoming order."""
    return sorted(candidates, key=lambda c: -c.score)


def correct_octave(
    bpm: float,
    ranked: list[TempoCandidate],
    min_bpm: float = 160.0,
    max_bpm: float = 190.0,
    half_time_below_bpm: float = 100.0,
    half_time_support: float = 0.4,
    double_time_above_bpm: float = 185.0,
    double_time_min_bpm: float = 80.0,
    double_time_max_bpm: float = 95.0,
    double_time_support: float = 0.8,
) -> float:
    """Fix half-time and double-time picks using the ranked candidate list.

    *ranked* must be ordered best first; ``ranked[0]`` produced *bpm*.
    A half-time pick is doubled when a candidate near half its lag scores
    above ``half_time_support`` of the best score. A double-time pick whose
    half falls in ``[double_time_min_bpm, double_time_max_bpm]`` is mapped
    back to twice that half when a candidate near double its lag scores above
    ``double_time_support`` of the best score.
    """
    if len(ranked) < 2:
        return bpm

    best = ranked[0]

    if bpm < half_time_below_bpm:
        doubled = bpm * 2
        if min_bpm <= doubled <= max_bpm:
            half_lag = best.lag // 2
            for c in ranked:
                if abs(c.lag - half_lag) <= 1 and c.score > best.score * half_time_support:
                    logger.debug(f"Half-time correction: {bpm:.1f} -> {doubled:.1f} BPM")
                    bpm = doubled
                    break

    if bpm > double_time_above_bpm:
        halved = bpm / 2
        if double_time_min_bpm <= halved <= double_time_max_bpm:
            double_lag = best.lag * 2
            for c in ranked:
                if abs(c.lag - double_lag) <= 1 and c.score > best.score * double_time_support:
                    logger.debug(f"Double-time check kept {halved * 2:.1f} BPM")
                    bpm = halved * 2
                    break

    return bpm


def estimate_tempo(
    autocorr: np.ndarray,
    sample_rate: int,
    hop_length: int = 512,
    min_bpm: float = 160.0,
    max_bpm: float = 190.0,
    max_harmonics: int = 8,
    default_bpm: float = DEFAULT_BPM,
    **octave_kwargs,
) -> float:
    """Estimate BPM from an autocorrelogram, always within ``[min_bpm, max_bpm]``.

    Falls back to *default_bpm* when the band holds no candidate, when no
    candidate has positive score (no periodic energy) or when the result is
    not finite.

    Digital silence deliberately returns *default_bpm*: ranking all-zero
    scores would pick the lowest lag and clamp it to *max_bpm*, reporting a
    confident 190 BPM for a track with no beat at all.
    """
    autocorr = np.nan_to_num(np.asarray(autocorr, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
    candidates = score_candidates(
        autocorr, sample_rate, hop_length, min_bpm, max_bpm, max_harmonics,
    )
    if not candidates:
        logger.debug("No tempo candidates in band; using default")
        return default_bpm

    ranked = rank_candidates(candidates)
    best = ranked[0]
    if not best.score > 0:
        logger.debug("No periodic energy in band; using default")
        return default_bpm

    bpm = lag_to_bpm(best.lag, sample_rate, hop_length)
    logger.debug(f"Best lag {best.lag} (score {best.score:.4g}) -> {bpm:.2f} BPM")

    bpm = correct_octave(bpm, ranked, min_bpm=min_bpm, max_bpm=max_bpm, **octave_kwargs)
    if not math.isfinite(bpm):
        return default_bpm
    return max(min_bpm, min(max_bpm, bpm))
