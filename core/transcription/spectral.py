"""
core/transcription/spectral.py — Framing, Hann windowing and magnitude spectra.

Pure DSP: numpy array + sample rate → SpectrumFrames. No librosa dependency.

Two magnitude estimators are available:
    - "fft": full-resolution real FFT, first n_bins bins kept.
    - "strided_dft": direct DFT evaluated over every `stride`-th input
      sample. Cheaper per bin than a full DFT but aliased above
      sr / (2 · stride). Kept so earlier strided-DFT
      transcriptions can be reproduced.

Onset detection only compares magnitudes frame-to-frame, so either
estimator works; absolute calibration does not matter.
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from core.config import DEFAULT_CONFIG, TranscriptionConfig
from core.transcription.types import Frame, SpectrumFrame

# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------


def iter_frames(
    y: np.ndarray,
    sr: int,
    frame_size: int,
    hop_size: int,
) -> Iterator[Frame]:
    """Yield frames lazily.

    A frame is emitted only while start + frame_size < len(y), so the final
    partial (or exactly-fitting) frame is skipped.
    """
    start = 0
    while start + frame_size < len(y):
        yield Frame(index=start, time=start / sr, samples=y[start : start + frame_size])
        start += hop_size


# ---------------------------------------------------------------------------
# Windowing
# ---------------------------------------------------------------------------


def hann_window(frame: np.ndarray) -> np.ndarray:
    """Return a Hann-windowed copy of `frame`.

    Uses the symmetric window from np.hanning, whose coefficient i is
    0.5 · (1 − cos(2πi / (n − 1))).

    Raises:
        ValueError: If the frame has fewer than 2 samples.
    """
    n = len(frame)
    if n < 2:
        raise ValueError(f"Hann window needs at least 2 samples, got {n}")
    return np.asarray(frame, dtype=np.float64) * np.hanning(n)


# ---------------------------------------------------------------------------
# Magnitude spectrum
# ---------------------------------------------------------------------------


def _strided_dft_basis(frame_size: int, n_bins: int, stride: int) -> np.ndarray:
    """Complex basis e^(-i·2π·k·n/frame_size), shape (n_bins, len(n))."""
    n = np.arange(0, frame_size, stride)
    k = np.arange(n_bins)[:, None]
    return np.exp(-2j * np.pi * k * n / frame_size)


def magnitude_spectrum(
    windowed: np.ndarray,
    *,
    n_bins: int = 512,
    method: str = "fft",
    stride: int = 4,
    basis: np.ndarray | None = None,
) -> np.ndarray:
    """Compute an n_bins-long magnitude spectrum of a windowed frame.

    Args:
        windowed: Hann-windowed frame.
        n_bins:   Number of bins to return (bin k ↔ k · sr / len(windowed) Hz).
        method:   "fft" or "strided_dft".
        stride:   Input subsampling stride for "strided_dft".
        basis:    Precomputed strided DFT basis (see _strided_dft_basis).
                  Built on demand when None.

    Returns:
        Non-negative float64 array of shape (n_bins,).
    """
    if method == "fft":
        return np.abs(np.fft.rfft(windowed))[:n_bins]

    if method == "strided_dft":
        if basis is None:
            basis = _strided_dft_basis(len(windowed), n_bins, stride)
        return np.abs(basis @ windowed[::stride])

    raise ValueError(f"Unknown spectrum method {method!r}")


def compute_spectrogram(
    y: np.ndarray,
    sr: int,
    config: TranscriptionConfig = DEFAULT_CONFIG,
) -> tuple[SpectrumFrame, ...]:
    """Frame, window and transform a waveform.

    Returns:
        One SpectrumFrame per frame, in time order. Empty when the waveform
        is not longer than one frame.
    """
    basis = None
    if config.spectrum_method == "strided_dft":
        basis = _strided_dft_basis(config.frame_size, config.n_bins, config.dft_stride)

    spectra: list[SpectrumFrame] = []
    for frame in iter_frames(y, sr, config.frame_size, config.hop_size):
        mags = magnitude_spectrum(
            hann_window(frame.samples),
            n_bins=config.n_bins,
            method=config.spectrum_method,
            stride=config.dft_stride,
            basis=basis,
        )
        spectra.append(SpectrumFrame(time=frame.time, magnitudes=mags))
    return tuple(spectra)
