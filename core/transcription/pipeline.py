"""
core/transcription/pipeline.py — Waveform → quantized note sequence.

Pipeline:
    1. validate_waveform()      reject malformed input at the boundary
    2. compute_spectrogram()    Hann-windowed magnitude frames
    3. detect_onsets()          spectral-flux peak picking
    4. estimate_pitch()         autocorrelation per onset (None → dropped)
    5. deduplicate_notes()      minimum-gap greedy scan
    6. estimate_tempo()         IOI histogram (None → fallback BPM)
    7. quantize_notes()         sixteenth-note grid, collapse collisions

Every call allocates its own intermediate collections; nothing is cached
between calls, so the functions are safe to run from any thread.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from core.config import DEFAULT_CONFIG, TranscriptionConfig
from core.transcription.onsets import detect_onsets
from core.transcription.pitch import estimate_pitch, pitch_window
from core.transcription.rhythm import (
    deduplicate_notes,
    estimate_tempo,
    inter_onset_intervals,
    quantize_notes,
    step_duration,
)
from core.transcription.spectral import compute_spectrogram
from core.transcription.types import (
    InvalidWaveformError,
    PitchedNote,
    QuantizedNote,
    Transcription,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Boundary validation
# ---------------------------------------------------------------------------


def validate_waveform(y: np.ndarray, sr: int) -> np.ndarray:
    """Check a waveform and sample rate, returning a read-only float64 copy.

    Raises:
        InvalidWaveformError: If sr is not a positive finite number, y is not
            one-dimensional, or y contains NaN/inf samples.
    """
    if isinstance(sr, bool) or not isinstance(sr, (int, float, np.integer, np.floating)):
        raise InvalidWaveformError(f"Sample rate must be a number, got {type(sr).__name__}")
    if not math.isfinite(float(sr)) or sr <= 0:
        raise InvalidWaveformError(f"Sample rate must be positive, got {sr}")

    try:
        samples = np.array(y, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidWaveformError(f"Waveform is not numeric: {exc}") from exc

    if samples.ndim != 1:
        raise InvalidWaveformError(
            f"Waveform must be mono (1-D), got shape {samples.shape}; downmix before calling"
        )
    if samples.size and not np.all(np.isfinite(samples)):
        bad = int(np.count_nonzero(~np.isfinite(samples)))
        raise InvalidWaveformError(f"Waveform contains {bad} non-finite sample(s)")

    samples.flags.writeable = False
    return samples


# ---------------------------------------------------------------------------
# Pitch stage
# ---------------------------------------------------------------------------


def _pitch_notes(
    y: np.ndarray,
    sr: int,
    onset_times: tuple[float, ...],
    config: TranscriptionConfig,
) -> tuple[PitchedNote, ...]:
    """Estimate a pitch for every onset, dropping onsets without one."""
    window_size = config.effective_pitch_window
    anchor_offset = config.frame_size // 2 if config.pitch_anchor == "frame" else 0

    notes: list[PitchedNote] = []
    for t in onset_times:
        center = int(math.floor(t * sr)) + anchor_offset
        pitch = estimate_pitch(pitch_window(y, center, window_size), sr, config)
        if pitch is not None:
            notes.append(PitchedNote(time=t, pitch=pitch))
    return tuple(notes)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def run_pipeline(
    y: np.ndarray,
    sr: int,
    config: TranscriptionConfig = DEFAULT_CONFIG,
) -> Transcription:
    """Transcribe a mono waveform, keeping every intermediate stage.

    Args:
        y:      Mono samples (any float dtype). Not modified.
        sr:     Sample rate in Hz.
        config: Pipeline parameters (default: DEFAULT_CONFIG).

    Returns:
        Transcription with the final notes, the tempo used and the
        intermediate onset/pitch/dedup results.

    Raises:
        InvalidWaveformError: On malformed input (see validate_waveform).
    """
    samples = validate_waveform(y, sr)
    duration_sec = samples.size / sr

    spectra = compute_spectrogram(samples, sr, config)
    onset_times = detect_onsets(spectra, config.onset_threshold)
    logger.debug("frames=%d onsets=%d", len(spectra), len(onset_times))

    pitched = _pitch_notes(samples, sr, onset_times, config)
    deduped = deduplicate_notes(pitched, config.min_gap_sec)
    logger.debug("pitched=%d deduplicated=%d", len(pitched), len(deduped))

    estimated = estimate_tempo(
        inter_onset_intervals([n.time for n in deduped]),
        min_interval=config.min_interval_sec,
        low=config.tempo_low_bpm,
        high=config.tempo_high_bpm,
    )
    bpm = float(estimated) if estimated is not None else config.fallback_bpm
    if estimated is None:
        logger.debug("tempo: insufficient onset data, using fallback %.1f BPM", bpm)

    notes = quantize_notes(
        deduped,
        bpm,
        steps_per_beat=config.steps_per_beat,
        epsilon=config.collapse_epsilon_sec,
    )
    logger.info("estBPM=%.1f notes=%d (%.2fs of audio)", bpm, len(notes), duration_sec)

    return Transcription(
        notes=notes,
        bpm=bpm,
        tempo_estimated=estimated is not None,
        step_sec=step_duration(bpm, config.steps_per_beat),
        onset_times=onset_times,
        pitched_notes=pitched,
        deduplicated_notes=deduped,
        duration_sec=duration_sec,
        sample_rate=int(sr),
    )


def transcribe(
    y: np.ndarray,
    sr: int,
    config: TranscriptionConfig = DEFAULT_CONFIG,
) -> tuple[QuantizedNote, ...]:
    """Transcribe a mono waveform to a chronologically ordered note sequence.

    Thin wrapper over run_pipeline() for callers that only need the notes.
    """
    return run_pipeline(y, sr, config).notes
