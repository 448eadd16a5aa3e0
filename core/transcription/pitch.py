"""
core/transcription/pitch.py — Autocorrelation pitch estimation.

For each onset a short window of the waveform is analysed:

    1. RMS below the silence threshold → no pitch.
    2. Biased autocorrelation corr(lag) = Σ x[i]·x[i+lag] for lags between
       floor(sr / max_hz) and floor(sr / min_hz) inclusive.
    3. The lag with the largest positive correlation gives f0 = sr / lag.
    4. f0 outside the plausible band → no pitch.
    5. f0 → semitone number, A4 = 440 Hz = 69.

"No pitch" is a normal outcome (noise, silence, percussive bursts) and is
reported as None, never as an exception.

The band post-filter (default 80–2000 Hz) is applied in addition to the
lag bounds so that estimates sitting exactly on a lag limit are dropped.
"""

from __future__ import annotations

import math

import numpy as np

from core.config import DEFAULT_CONFIG, TranscriptionConfig

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

AUTOCORR_MIN_HZ: float = 80.0
"""Lowest detectable frequency. Sets the largest lag searched."""

AUTOCORR_MAX_HZ: float = 1000.0
"""Highest detectable frequency. Sets the smallest lag searched."""

SILENCE_RMS: float = 0.002
"""Windows with RMS below this are treated as silence."""


# ---------------------------------------------------------------------------
# Core pitch conversion utilities (pure math)
# ---------------------------------------------------------------------------


def hz_to_midi(hz: float) -> int:
    """Convert frequency in Hz to the nearest semitone number.

    Formula: midi = round(69 + 12 × log₂(hz / 440))

    Raises:
        ValueError: If hz ≤ 0.
    """
    if hz <= 0.0:
        raise ValueError(f"Hz must be > 0, got {hz}")
    return int(math.floor(69.0 + 12.0 * math.log2(hz / 440.0) + 0.5))


# ---------------------------------------------------------------------------
# Windowing around an onset
# ---------------------------------------------------------------------------


def pitch_window(y: np.ndarray, center_sample: int, window_size: int) -> np.ndarray:
    """Slice `window_size` samples of `y` centred on `center_sample`.

    The start is clamped to 0 and the end to len(y), so windows near the
    edges of the waveform are shorter than window_size.
    """
    start = max(0, center_sample - window_size // 2)
    end = min(len(y), start + window_size)
    return y[start:end]


# ---------------------------------------------------------------------------
# Frequency estimation
# ---------------------------------------------------------------------------


def _autocorrelation(x: np.ndarray, min_lag: int, max_lag: int) -> np.ndarray:
    """Biased autocorrelation for lags min_lag..max_lag (inclusive).

    Lags that reach past the end of x contribute 0.
    """
    n = len(x)
    corr = np.zeros(max_lag - min_lag + 1, dtype=np.float64)
    for offset, lag in enumerate(range(min_lag, min(max_lag, n - 1) + 1)):
        corr[offset] = np.dot(x[: n - lag], x[lag:])
    return corr


def estimate_frequency(
    window: np.ndarray,
    sr: int,
    *,
    min_hz: float = AUTOCORR_MIN_HZ,
    max_hz: float = AUTOCORR_MAX_HZ,
    silence_rms: float = SILENCE_RMS,
) -> float | None:
    """Estimate the fundamental frequency of a window by autocorrelation.

    Args:
        window:      Mono samples (any length).
        sr:          Sample rate in Hz.
        min_hz:      Lowest frequency searched (maxLag = floor(sr / min_hz)).
        max_hz:      Highest frequency searched (minLag = floor(sr / max_hz)).
        silence_rms: RMS threshold below which the window is silent.

    Returns:
        Frequency in Hz, or None when the window is silent or no lag has a
        positive correlation.
    """
    x = np.asarray(window, dtype=np.float64)
    if x.size == 0:
        return None

    rms = math.sqrt(float(np.mean(x * x)))
    if rms < silence_rms:
        return None

    min_lag = int(math.floor(sr / max_hz))
    max_lag = int(math.floor(sr / min_hz))
    if max_lag < min_lag:
        return None

    corr = _autocorrelation(x, min_lag, max_lag)

    best_lag = -1
    best_corr = 0.0
    for offset, value in enumerate(corr):
        if value > best_corr:
            best_corr = float(value)
            best_lag = min_lag + offset

    if best_lag <= 0:
        return None
    return sr / best_lag


def estimate_pitch(
    window: np.ndarray,
    sr: int,
    config: TranscriptionConfig = DEFAULT_CONFIG,
) -> int | None:
    """Estimate the semitone number of a window, or None for no pitch.

    Frequencies not strictly inside (band_low_hz, band_high_hz) are rejected.
    """
    freq = estimate_frequency(
        window,
        sr,
        min_hz=config.autocorr_min_hz,
        max_hz=config.autocorr_max_hz,
        silence_rms=config.silence_rms,
    )
    if freq is None:
        return None
    if not config.band_low_hz < freq < config.band_high_hz:
        return None
    return hz_to_midi(freq)
