"""
Tests for core/transcription/rhythm.py — dedup, tempo estimation, quantization.

Tests cover:
    - deduplicate_notes(): greedy first-wins scan, inclusive gap, sorting
    - fold_bpm() / estimate_tempo(): octave folding, voting, ties, None cases
    - quantize_notes(): grid snapping, collision collapse, idempotence
"""

import pytest

from core.transcription.rhythm import (
    deduplicate_notes,
    estimate_tempo,
    fold_bpm,
    inter_onset_intervals,
    quantize_notes,
    quantize_time,
    step_duration,
)
from core.transcription.types import PitchedNote, QuantizedNote

# ---------------------------------------------------------------------------
# deduplicate_notes
# ---------------------------------------------------------------------------


class TestDeduplicateNotes:
    def test_close_notes_collapse_to_first(self):
        notes = [PitchedNote(0.00, 60), PitchedNote(0.05, 62), PitchedNote(0.20, 64)]
        assert deduplicate_notes(notes) == (PitchedNote(0.00, 60), PitchedNote(0.20, 64))

    def test_gap_equal_to_min_gap_is_dropped(self):
        notes = [PitchedNote(0.0, 60), PitchedNote(0.08, 62)]
        assert deduplicate_notes(notes, min_gap=0.08) == (PitchedNote(0.0, 60),)

    def test_gap_measured_from_last_kept(self):
        """0.05 is dropped; 0.10 is compared against 0.0, not against 0.05."""
        notes = [PitchedNote(0.0, 60), PitchedNote(0.05, 61), PitchedNote(0.10, 62)]
        assert deduplicate_notes(notes) == (PitchedNote(0.0, 60), PitchedNote(0.10, 62))

    def test_unsorted_input_is_sorted(self):
        notes = [PitchedNote(1.0, 64), PitchedNote(0.0, 60)]
        assert [n.time for n in deduplicate_notes(notes)] == [0.0, 1.0]

    def test_empty(self):
        assert deduplicate_notes([]) == ()

    def test_consecutive_gaps_exceed_min_gap(self):
        notes = [PitchedNote(t / 100, 60) for t in range(0, 100, 3)]
        kept = deduplicate_notes(notes)
        assert all(b.time - a.time > 0.08 for a, b in zip(kept, kept[1:]))


# ---------------------------------------------------------------------------
# Tempo
# ---------------------------------------------------------------------------


class TestInterOnsetIntervals:
    def test_differences(self):
        assert inter_onset_intervals([0.0, 0.5, 1.25]) == pytest.approx([0.5, 0.75])

    def test_short_input(self):
        assert inter_onset_intervals([1.0]) == []
        assert inter_onset_intervals([]) == []


class TestFoldBpm:
    @pytest.mark.parametrize(
        "bpm, folded",
        [(120.0, 120.0), (240.0, 120.0), (480.0, 120.0), (30.0, 60.0), (59.0, 118.0)],
    )
    def test_folding(self, bpm, folded):
        assert fold_bpm(bpm) == pytest.approx(folded)

    def test_upper_bound_exclusive(self):
        assert fold_bpm(180.0) == pytest.approx(90.0)

    def test_lower_bound_inclusive(self):
        assert fold_bpm(60.0) == pytest.approx(60.0)

    @pytest.mark.parametrize("bad", [0.0, -10.0, float("inf"), float("nan")])
    def test_invalid_raises(self, bad):
        with pytest.raises(ValueError):
            fold_bpm(bad)


class TestEstimateTempo:
    def test_steady_quarter_notes(self):
        assert estimate_tempo([0.5, 0.5, 0.5]) == 120

    def test_eighth_notes_fold_to_same_tempo(self):
        assert estimate_tempo([0.25, 0.25, 0.25]) == 120

    def test_mixed_subdivisions_vote_together(self):
        assert estimate_tempo([0.5, 0.25, 1.0, 0.6]) == 120

    def test_single_interval_returns_none(self):
        assert estimate_tempo([0.5]) is None

    def test_empty_returns_none(self):
        assert estimate_tempo([]) is None

    def test_all_short_intervals_return_none(self):
        assert estimate_tempo([0.01, 0.02, 0.015]) is None

    def test_short_intervals_ignored(self):
        assert estimate_tempo([0.01, 0.5, 0.5]) == 120

    def test_tie_goes_to_slower(self):
        """One vote each for 100 and 120 BPM → 100."""
        assert estimate_tempo([0.5, 0.6]) == 100

    def test_result_within_range(self):
        for dt in (0.11, 0.37, 0.73, 1.9, 3.3):
            bpm = estimate_tempo([dt, dt])
            assert 60 <= bpm < 180

    def test_rounding_half_up(self):
        """Folded BPMs are rounded to the nearest integer."""
        assert estimate_tempo([0.48, 0.48]) == 125

    def test_vote_rounded_up_to_upper_bound_is_folded(self):
        """0.334 s → 179.64 BPM, which rounds to 180 and folds to 90."""
        assert estimate_tempo([0.334, 0.334]) == 90

    def test_near_upper_bound_stays_below_it(self):
        for dt in (0.3341, 0.33425, 0.1671, 0.6681):
            bpm = estimate_tempo([dt, dt])
            assert 60 <= bpm < 180

    def test_just_below_rounding_boundary_kept(self):
        """60 / 0.3345 = 179.37 → 179."""
        assert estimate_tempo([0.3345, 0.3345]) == 179


# ---------------------------------------------------------------------------
# Quantization
# ---------------------------------------------------------------------------


class TestStepDuration:
    def test_120_bpm_sixteenths(self):
        assert step_duration(120.0) == pytest.approx(0.125)

    def test_eighths(self):
        assert step_duration(120.0, steps_per_beat=2) == pytest.approx(0.25)

    def test_zero_bpm_raises(self):
        with pytest.raises(ValueError, match="bpm must be positive"):
            step_duration(0.0)

    def test_zero_steps_raises(self):
        with pytest.raises(ValueError, match="steps_per_beat must be positive"):
            step_duration(120.0, 0)


class TestQuantizeTime:
    def test_snaps_to_nearest(self):
        assert quantize_time(0.13, 0.125) == pytest.approx(0.125)
        assert quantize_time(0.19, 0.125) == pytest.approx(0.25)

    def test_half_step_rounds_up(self):
        assert quantize_time(0.0625, 0.125) == pytest.approx(0.125)


class TestQuantizeNotes:
    def test_snaps_to_grid(self):
        notes = [PitchedNote(0.01, 60), PitchedNote(0.51, 62), PitchedNote(0.98, 64)]
        out = quantize_notes(notes, 120.0)
        assert [n.start_time for n in out] == pytest.approx([0.0, 0.5, 1.0])
        assert [n.pitch for n in out] == [60, 62, 64]

    def test_collision_first_wins(self):
        notes = [PitchedNote(0.49, 60), PitchedNote(0.52, 67)]
        out = quantize_notes(notes, 120.0)
        assert out == (QuantizedNote(0.5, 60),)

    def test_every_start_is_grid_multiple(self):
        notes = [PitchedNote(t * 0.173, 60) for t in range(20)]
        step = step_duration(97.0)
        for n in quantize_notes(notes, 97.0):
            k = n.start_time / step
            assert k == pytest.approx(round(k))

    def test_output_sorted_and_distinct(self):
        notes = [PitchedNote(t * 0.07, 60) for t in range(30)]
        out = quantize_notes(notes, 120.0)
        assert all(b.start_time - a.start_time > 1e-4 for a, b in zip(out, out[1:]))

    def test_idempotent(self):
        notes = [PitchedNote(0.03, 60), PitchedNote(0.61, 62), PitchedNote(1.37, 64)]
        once = quantize_notes(notes, 110.0)
        assert quantize_notes(once, 110.0) == once

    def test_empty(self):
        assert quantize_notes([], 120.0) == ()

    def test_invalid_bpm_raises(self):
        with pytest.raises(ValueError):
            quantize_notes([PitchedNote(0.0, 60)], 0.0)
