"""
core/transcription/types.py — Frozen data types for the transcription pipeline.

All types are frozen dataclasses — immutable value objects that can be
safely passed between pipeline stages and layers.

Design principles:
    - No I/O, no state, no side effects.
    - Invariants are documented but NOT enforced at construction time —
      validation happens at the pipeline boundary (pipeline.validate_waveform).
    - Sequences are tuples so results stay hashable and cannot be mutated
      by downstream consumers.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Chromatic note names (sharps notation)
_NOTE_NAMES: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)


class InvalidWaveformError(ValueError):
    """Raised when the pipeline boundary receives malformed audio input.

    Covers non-1-D sample arrays, NaN/inf samples and non-positive
    sample rates. Subclasses ValueError so callers that already map
    ValueError to a validation failure keep working.
    """


def midi_to_name(midi: int) -> str:
    """Convert a semitone number to scientific pitch notation.

    Examples:
        69 → 'A4'
        60 → 'C4'
        21 → 'A0'
    """
    octave = (midi // 12) - 1
    return f"{_NOTE_NAMES[midi % 12]}{octave}"


@dataclass(frozen=True, eq=False)
class Frame:
    """A window of `frame_size` consecutive samples.

    `samples` is a view into the analysed waveform, not a copy.
    """

    index: int
    """Start sample of the frame."""

    time: float
    """Start time in seconds (index / sample_rate)."""

    samples: np.ndarray


@dataclass(frozen=True, eq=False)
class SpectrumFrame:
    """Magnitude spectrum of one Frame.

    Invariants:
        len(magnitudes) == config.n_bins
        all(m >= 0 for m in magnitudes)
    """

    time: float
    magnitudes: np.ndarray


@dataclass(frozen=True)
class PitchedNote:
    """An onset paired with a pitch estimate (pre-quantization)."""

    time: float
    """Onset time in seconds."""

    pitch: int
    """Semitone number. A4 = 69."""


@dataclass(frozen=True)
class QuantizedNote:
    """A note snapped to the tempo grid — the pipeline's output unit.

    Invariants:
        start_time >= 0
        start_time is a multiple of the grid step
    """

    start_time: float
    pitch: int

    @property
    def pitch_name(self) -> str:
        """Scientific pitch notation, e.g. 'A4', 'C#5'."""
        return midi_to_name(self.pitch)


@dataclass(frozen=True)
class Transcription:
    """Complete result of run_pipeline().

    Carries the intermediate stages alongside the final notes so callers
    can inspect why an onset did or did not become a note.

    Invariants:
        bpm > 0
        step_sec == 60 / bpm / steps_per_beat
        onset_times strictly increasing
    """

    notes: tuple[QuantizedNote, ...]
    """Final quantized notes in chronological order."""

    bpm: float
    """Tempo of the quantization grid."""

    tempo_estimated: bool
    """False when the fallback BPM was used (insufficient onset data)."""

    step_sec: float
    """Grid step duration in seconds."""

    onset_times: tuple[float, ...]
    """Onset candidates from spectral-flux peak picking."""

    pitched_notes: tuple[PitchedNote, ...]
    """Onsets that received a pitch, before deduplication."""

    deduplicated_notes: tuple[PitchedNote, ...]
    """Pitched notes after minimum-gap deduplication."""

    duration_sec: float
    """Length of the analysed waveform in seconds."""

    sample_rate: int

    @property
    def steps_per_beat(self) -> int:
        """Grid subdivision the notes were quantized to (4 = sixteenths)."""
        return max(1, round(60.0 / self.bpm / self.step_sec))
