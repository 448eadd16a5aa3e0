"""
Shared fixtures for the test suite.

Centralizes synthetic audio generation so individual test files
don't need to repeat signal-building boilerplate.

Tone bursts are "plucked": a 5 ms linear attack, exponential decay
(τ = 25 ms) and a 10 ms linear fade at the end. The decay keeps spectral
flux from peaking a second time when a burst dies away, so each burst
yields one onset. Pass `plucked=False` for a flat burst with hard edges:
the cut-off at the end is as abrupt as the attack, so flux fires at both
ends and each burst yields two onsets.
"""

from collections.abc import Callable, Sequence

import numpy as np
import pytest

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SR: int = 44100
"""Sample rate used by every synthetic signal."""

BURST_SEC: float = 0.1
LEAD_IN_SEC: float = 0.05
"""Silence before the first burst. Peaks are never picked in the first two
frames, so an attack at t = 0 produces no onset."""


# ---------------------------------------------------------------------------
# Signal builders
# ---------------------------------------------------------------------------


def sine(freq: float, n_samples: int, sr: int = SR, amplitude: float = 0.5) -> np.ndarray:
    """Pure sine starting at phase 0."""
    t = np.arange(n_samples) / sr
    return amplitude * np.sin(2.0 * np.pi * freq * t)


def tone_burst(
    freq: float = 440.0,
    sr: int = SR,
    duration: float = BURST_SEC,
    amplitude: float = 0.5,
    plucked: bool = True,
) -> np.ndarray:
    """One tone burst, plucked or flat."""
    n = int(round(duration * sr))
    if not plucked:
        return sine(freq, n, sr, amplitude)
    t = np.arange(n) / sr
    envelope = np.exp(-t / 0.025)
    envelope *= np.clip(t / 0.005, 0.0, 1.0)
    envelope *= np.clip((duration - t) / 0.01, 0.0, 1.0)
    return amplitude * envelope * np.sin(2.0 * np.pi * freq * t)


def burst_train(
    starts: Sequence[float],
    total_sec: float,
    *,
    freq: float = 440.0,
    amplitude: float = 0.5,
    sr: int = SR,
    plucked: bool = True,
) -> np.ndarray:
    """Silence with a tone burst starting at each time in `starts`."""
    y = np.zeros(int(round(total_sec * sr)), dtype=np.float64)
    burst = tone_burst(freq, sr, amplitude=amplitude, plucked=plucked)
    for start in starts:
        i = int(round(start * sr))
        end = min(len(y), i + len(burst))
        y[i:end] += burst[: end - i]
    return y


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_bursts() -> Callable[..., np.ndarray]:
    """Factory fixture: make_bursts(starts, total_sec, freq=..., plucked=...)."""
    return burst_train


@pytest.fixture()
def four_bursts() -> np.ndarray:
    """Four 100 ms 440 Hz bursts exactly 0.5 s apart (quarter notes at 120 BPM)."""
    starts = [LEAD_IN_SEC + 0.5 * k for k in range(4)]
    return burst_train(starts, total_sec=2.2)


@pytest.fixture()
def silence() -> np.ndarray:
    """Two seconds of digital silence."""
    return np.zeros(2 * SR, dtype=np.float64)


@pytest.fixture()
def make_sine() -> Callable[..., np.ndarray]:
    """Factory fixture: make_sine(freq, n_samples, sr=SR, amplitude=0.5)."""
    return sine
