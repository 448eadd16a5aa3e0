"""
core/transcription/onsets.py — Spectral-flux onset detection.

Spectral flux = sum of positive magnitude differences between consecutive
frames. The curve is normalized to its maximum and local peaks above a
fixed threshold become onset candidates.

Peak picking uses an asymmetric comparison: strictly greater than the
previous frame, greater-or-equal to the next. Two equal adjacent peaks
therefore resolve to the earlier one. The first two and last two frames
are never candidates.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from core.transcription.types import SpectrumFrame

DEFAULT_THRESHOLD: float = 0.2
"""Normalized flux a peak must exceed to count as an onset."""

_EDGE_FRAMES: int = 2
"""Frames skipped at each end of the novelty curve."""


def spectral_flux(spectra: Sequence[SpectrumFrame]) -> np.ndarray:
    """Half-wave rectified spectral flux per frame.

    novelty[0] is 0 (no previous frame); for i ≥ 1
    novelty[i] = Σ_k max(0, mag[i][k] − mag[i−1][k]).

    Returns:
        float64 array of shape (len(spectra),). Empty for empty input.
    """
    if len(spectra) == 0:
        return np.zeros(0, dtype=np.float64)

    mag = np.stack([s.magnitudes for s in spectra])  # shape (n_frames, n_bins)
    flux = np.zeros(len(spectra), dtype=np.float64)
    if len(spectra) > 1:
        diff = np.diff(mag, axis=0)
        flux[1:] = np.sum(np.maximum(diff, 0.0), axis=1)
    return flux


def normalize_novelty(novelty: np.ndarray) -> np.ndarray:
    """Scale the curve so its maximum is 1. All-zero curves are returned as-is."""
    if novelty.size == 0:
        return novelty.copy()
    peak = float(np.max(novelty))
    if peak > 0.0:
        return novelty / peak
    return novelty.copy()


def pick_peaks(novelty: np.ndarray, threshold: float = DEFAULT_THRESHOLD) -> list[int]:
    """Indices of local maxima above `threshold`.

    Index i qualifies when 2 ≤ i < len − 2 and
        novelty[i] > threshold
        novelty[i] > novelty[i − 1]
        novelty[i] ≥ novelty[i + 1]
    """
    peaks: list[int] = []
    for i in range(_EDGE_FRAMES, len(novelty) - _EDGE_FRAMES):
        value = novelty[i]
        if value > threshold and value > novelty[i - 1] and value >= novelty[i + 1]:
            peaks.append(i)
    return peaks


def detect_onsets(
    spectra: Sequence[SpectrumFrame],
    threshold: float = DEFAULT_THRESHOLD,
) -> tuple[float, ...]:
    """Detect onset times (seconds) from a spectrogram.

    Args:
        spectra:   SpectrumFrames in time order.
        threshold: Normalized flux threshold (default 0.2).

    Returns:
        Strictly increasing onset times. Empty when spectra is empty or
        the signal never changes.
    """
    novelty = normalize_novelty(spectral_flux(spectra))
    return tuple(spectra[i].time for i in pick_peaks(novelty, threshold))
