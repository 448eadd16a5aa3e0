"""
core/transcription/lanes.py — Map semitone numbers onto display lanes.

Falling-note and rhythm-game front ends draw each note in one of a small
number of lanes. Pitches are clamped to a playable range, then spread
linearly across the lanes; the top of the range lands in the last lane only
at the clamp limit.
"""

from __future__ import annotations

DEFAULT_LANES: int = 8
LANE_LOW_PITCH: int = 40
"""E2 — pitches below are drawn in lane 0."""

LANE_HIGH_PITCH: int = 88
"""E6 — pitches above are drawn in the last lane."""


def pitch_to_lane(
    pitch: int,
    lanes: int = DEFAULT_LANES,
    low: int = LANE_LOW_PITCH,
    high: int = LANE_HIGH_PITCH,
) -> int:
    """Return the lane index in [0, lanes − 1] for a semitone number.

    Raises:
        ValueError: If lanes < 1 or low >= high.
    """
    if lanes < 1:
        raise ValueError(f"lanes must be at least 1, got {lanes}")
    if low >= high:
        raise ValueError(f"low ({low}) must be less than high ({high})")
    clamped = max(low, min(high, pitch))
    t = (clamped - low) / (high - low)
    return int(t * (lanes - 1))
