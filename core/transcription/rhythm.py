"""
core/transcription/rhythm.py — Deduplication, tempo estimation, quantization.

The three post-pitch stages of the pipeline:

    deduplicate_notes()  greedy forward scan, first note of a cluster wins
    estimate_tempo()     histogram of octave-folded inter-onset BPMs
    quantize_notes()     snap to a sixteenth-note grid, collapse collisions

Tempo folding:
    60 / IOI gives a BPM suggestion; doubling or halving it describes the
    same pulse at another subdivision, so every suggestion is folded into
    [60, 180) before voting. A quarter-note IOI of 0.5 s and an eighth-note
    IOI of 0.25 s both vote for 120 BPM.

Rounding is half-up throughout (floor(x + 0.5)) so grid positions do not
depend on Python's banker's rounding.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence

from core.transcription.types import PitchedNote, QuantizedNote

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_GAP_SEC: float = 0.08
"""Notes within this many seconds of the previous kept note are dropped."""

MIN_INTERVAL_SEC: float = 0.02
"""Inter-onset intervals at or below this are too short to suggest a tempo."""

TEMPO_LOW_BPM: float = 60.0
TEMPO_HIGH_BPM: float = 180.0

FALLBACK_BPM: float = 120.0
"""Tempo used by callers when estimate_tempo() returns None."""

STEPS_PER_BEAT: int = 4
"""Sixteenth-note grid."""

COLLAPSE_EPSILON_SEC: float = 1e-4
"""Snapped notes closer than this are considered the same grid slot."""


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ---------------------------------------------------------------------------
# Note deduplication
# ---------------------------------------------------------------------------


def deduplicate_notes(
    notes: Sequence[PitchedNote],
    min_gap: float = MIN_GAP_SEC,
) -> tuple[PitchedNote, ...]:
    """Drop notes within `min_gap` seconds of the previously kept note.

    Notes are sorted by time first (stable, so equal times keep input order).
    This is a greedy scan, not a global optimum: the first note of a cluster
    is always kept.
    """
    kept: list[PitchedNote] = []
    for note in sorted(notes, key=lambda n: n.time):
        if not kept or note.time - kept[-1].time > min_gap:
            kept.append(note)
    return tuple(kept)


# ---------------------------------------------------------------------------
# Tempo estimation
# ---------------------------------------------------------------------------


def inter_onset_intervals(times: Sequence[float]) -> list[float]:
    """Consecutive differences of a time sequence."""
    return [b - a for a, b in zip(times, times[1:])]


def fold_bpm(
    bpm: float,
    low: float = TEMPO_LOW_BPM,
    high: float = TEMPO_HIGH_BPM,
) -> float:
    """Fold a tempo into [low, high) by repeated doubling or halving.

    Raises:
        ValueError: If bpm is not a positive finite number.
    """
    if not (bpm > 0 and math.isfinite(bpm)):
        raise ValueError(f"bpm must be positive and finite, got {bpm}")
    folded = bpm
    while folded < low:
        folded *= 2.0
    while folded >= high:
        folded /= 2.0
    return folded


def _folded_vote(bpm: float, low: float, high: float) -> int:
    """Fold, round half-up, and fold again if rounding reached `high`."""
    vote = _round_half_up(fold_bpm(bpm, low, high))
    while vote >= high:
        vote = _round_half_up(vote / 2.0)
    return vote


def estimate_tempo(
    intervals: Sequence[float],
    *,
    min_interval: float = MIN_INTERVAL_SEC,
    low: float = TEMPO_LOW_BPM,
    high: float = TEMPO_HIGH_BPM,
) -> int | None:
    """Most frequent folded BPM among the inter-onset intervals.

    Args:
        intervals:    Inter-onset intervals in seconds.
        min_interval: Intervals ≤ this are ignored.
        low, high:    Folding range.

    Returns:
        Integer BPM, or None when fewer than 2 intervals are given or none
        is longer than min_interval. Ties go to the slower tempo. The result
        always lies in [low, high), including votes that round up to `high`
        (0.334 s folds to 179.64 and votes for 90, not 180).
    """
    if len(intervals) < 2:
        return None

    votes: Counter[int] = Counter()
    for dt in intervals:
        if dt <= min_interval:
            continue
        votes[_folded_vote(60.0 / dt, low, high)] += 1

    if not votes:
        return None

    best_count = max(votes.values())
    return min(bpm for bpm, count in votes.items() if count == best_count)


# ---------------------------------------------------------------------------
# Quantization
# ---------------------------------------------------------------------------


def step_duration(bpm: float, steps_per_beat: int = STEPS_PER_BEAT) -> float:
    """Grid step in seconds: (60 / bpm) / steps_per_beat.

    Raises:
        ValueError: If bpm ≤ 0 or steps_per_beat ≤ 0.
    """
    if bpm <= 0:
        raise ValueError(f"bpm must be positive, got {bpm}")
    if steps_per_beat <= 0:
        raise ValueError(f"steps_per_beat must be positive, got {steps_per_beat}")
    return (60.0 / bpm) / steps_per_beat


def quantize_time(time: float, step: float) -> float:
    """Snap a time to the nearest multiple of `step`."""
    return _round_half_up(time / step) * step


def quantize_notes(
    notes: Sequence[PitchedNote] | Sequence[QuantizedNote],
    bpm: float,
    *,
    steps_per_beat: int = STEPS_PER_BEAT,
    epsilon: float = COLLAPSE_EPSILON_SEC,
) -> tuple[QuantizedNote, ...]:
    """Snap note times to the tempo grid and collapse collisions.

    Accepts PitchedNotes (pipeline input) or QuantizedNotes (re-quantizing an
    existing result). Input order is preserved; after snapping, a note whose
    time is within `epsilon` of the previous kept note is dropped, so when
    two onsets land on the same slot the earlier one wins.

    Re-quantizing the output with the same bpm returns it unchanged.
    """
    step = step_duration(bpm, steps_per_beat)

    out: list[QuantizedNote] = []
    for note in notes:
        time = note.time if isinstance(note, PitchedNote) else note.start_time
        snapped = QuantizedNote(start_time=quantize_time(time, step), pitch=note.pitch)
        if not out or abs(snapped.start_time - out[-1].start_time) > epsilon:
            out.append(snapped)
    return tuple(out)
