"""
ingestion/midi_export.py — Convert quantized note sequences to MIDI files using mido.

This module is the I/O output boundary of the transcription pipeline:
    audio → transcribe (core/) → notes_to_midi

MIDI structure:
    Type 1, Track 0 = tempo + time signature, Track 1 = notes (channel 0)

Note lengths:
    Transcription only yields onsets, so every note is given a fixed length
    of `note_steps` grid steps (default one step of the `steps_per_beat`
    grid, a sixteenth unless told otherwise). A note is cut short
    where the next onset begins so repeated pitches re-trigger cleanly.

Why tick timing from seconds:
    Quantized start times are exact multiples of the grid step, so
        ticks = seconds × (BPM / 60) × ticks_per_beat
    lands on whole ticks whenever ticks_per_beat is divisible by the
    grid subdivision (480 / 4 = 120 ticks per sixteenth, 480 / 2 = 240 per
    eighth).
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import mido

from core.transcription.types import QuantizedNote

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_TICKS_PER_BEAT: int = 480
"""Standard MIDI ticks per quarter note. 480 gives 1 ms resolution at 120 BPM."""

MIDI_CHANNEL: int = 0
"""MIDI channel for note events (0-indexed = channel 1 in DAW)."""

DEFAULT_VELOCITY: int = 90
"""Transcription carries no dynamics; every note_on uses this velocity."""

DEFAULT_STEPS_PER_BEAT: int = 4
"""Grid subdivision of one beat (4 = sixteenth notes)."""


# ---------------------------------------------------------------------------
# Time conversion utilities
# ---------------------------------------------------------------------------


def _sec_to_ticks(
    seconds: float,
    bpm: float,
    ticks_per_beat: int,
) -> int:
    """Convert a time in seconds to MIDI ticks.

    Formula: ticks = seconds × (BPM / 60) × ticks_per_beat

    Returns:
        Non-negative integer tick count.
    """
    if seconds < 0:
        return 0
    beats_per_sec = bpm / 60.0
    return max(0, round(seconds * beats_per_sec * ticks_per_beat))


def _bpm_to_tempo_us(bpm: float) -> int:
    """Convert BPM to MIDI tempo (microseconds per beat).

    120 BPM = 500,000 μs/beat. Non-positive BPM falls back to 120.
    """
    if bpm <= 0:
        bpm = 120.0
    return max(1, round(60_000_000.0 / bpm))


# ---------------------------------------------------------------------------
# Primary export function
# ---------------------------------------------------------------------------


def notes_to_midi(
    notes: Sequence[QuantizedNote],
    *,
    bpm: float = 120.0,
    output_path: str | Path | None = None,
    ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT,
    steps_per_beat: int = DEFAULT_STEPS_PER_BEAT,
    note_steps: int = 1,
    velocity: int = DEFAULT_VELOCITY,
) -> mido.MidiFile:
    """Convert a sequence of QuantizedNote objects to a MIDI file.

    Delta time encoding:
        MIDI messages use delta times (ticks since last message).
        Absolute tick positions are computed for all events, sorted
        (note_off before note_on at the same tick), then converted to deltas.

    Args:
        notes: Quantized notes in chronological order. Must not be empty.
        bpm: Tempo of the quantization grid (default: 120.0).
        output_path: If provided, saves the MIDI file to this path.
                     The path's parent directory must exist.
        ticks_per_beat: MIDI resolution (default: 480, standard).
        steps_per_beat: Grid subdivision the notes were quantized to
                        (default 4, sixteenths). Sets the length of one step.
        note_steps: Note length in grid steps (default 1).
        velocity: note_on velocity, clamped to 1–127.

    Returns:
        mido.MidiFile object. Can be further modified or saved manually.

    Raises:
        ValueError: If notes is empty, note_steps or steps_per_beat is
                    below 1, or a pitch is outside the MIDI range 0–127.
        OSError: If output_path is not writable.
    """
    if not notes:
        raise ValueError("notes sequence must not be empty")
    if note_steps < 1:
        raise ValueError(f"note_steps must be at least 1, got {note_steps}")
    if steps_per_beat < 1:
        raise ValueError(f"steps_per_beat must be at least 1, got {steps_per_beat}")
    for note in notes:
        if not 0 <= note.pitch <= 127:
            raise ValueError(f"pitch {note.pitch} at {note.start_time:.3f}s is outside 0–127")

    midi = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)

    # Track 0: metadata
    meta_track = mido.MidiTrack()
    midi.tracks.append(meta_track)

    tempo_us = _bpm_to_tempo_us(bpm)
    meta_track.append(mido.MetaMessage("set_tempo", tempo=tempo_us, time=0))
    meta_track.append(
        mido.MetaMessage(
            "time_signature",
            numerator=4,
            denominator=4,
            clocks_per_click=24,
            notated_32nd_notes_per_beat=8,
            time=0,
        )
    )
    meta_track.append(mido.MetaMessage("end_of_track", time=0))

    # Track 1: note events
    note_track = mido.MidiTrack()
    midi.tracks.append(note_track)

    length_ticks = note_steps * max(1, ticks_per_beat // steps_per_beat)
    velocity = max(1, min(127, velocity))  # ensure non-zero for note_on

    on_ticks = [_sec_to_ticks(n.start_time, bpm, ticks_per_beat) for n in notes]

    # (absolute_tick, event_type, pitch, velocity); event_type 0 = note_off, 1 = note_on
    events: list[tuple[int, int, int, int]] = []
    for i, (note, on_tick) in enumerate(zip(notes, on_ticks)):
        off_tick = on_tick + length_ticks
        later = [t for t in on_ticks[i + 1 :] if t > on_tick]
        if later:
            off_tick = min(off_tick, later[0])
        off_tick = max(off_tick, on_tick + 1)

        events.append((on_tick, 1, note.pitch, velocity))
        events.append((off_tick, 0, note.pitch, 0))

    events.sort(key=lambda e: (e[0], e[1]))

    current_tick = 0
    for abs_tick, event_type, pitch, vel in events:
        delta = abs_tick - current_tick
        current_tick = abs_tick
        msg_type = "note_on" if event_type == 1 else "note_off"
        note_track.append(
            mido.Message(msg_type, channel=MIDI_CHANNEL, note=pitch, velocity=vel, time=delta)
        )

    note_track.append(mido.MetaMessage("end_of_track", time=0))

    if output_path is not None:
        midi.save(str(output_path))

    return midi


# ---------------------------------------------------------------------------
# Round-trip parser (MIDI → QuantizedNotes)
# ---------------------------------------------------------------------------


def midi_to_notes(midi_file: mido.MidiFile) -> list[QuantizedNote]:
    """Parse note onsets from a MIDI file written by notes_to_midi().

    Reads the tempo from Track 0 (default 120 BPM) and every note_on with
    non-zero velocity from Track 1.

    Returns:
        QuantizedNotes sorted by start_time. Empty if no note events found.
    """
    tempo_us = 500_000  # default
    if midi_file.tracks:
        for msg in midi_file.tracks[0]:
            if msg.type == "set_tempo":
                tempo_us = msg.tempo
                break

    bpm = 60_000_000.0 / tempo_us
    ticks_per_beat = midi_file.ticks_per_beat

    if len(midi_file.tracks) < 2:
        return []

    abs_tick = 0
    notes: list[QuantizedNote] = []
    for msg in midi_file.tracks[1]:
        abs_tick += msg.time
        if msg.type == "note_on" and msg.velocity > 0:
            start = abs_tick / ticks_per_beat / (bpm / 60.0)
            notes.append(QuantizedNote(start_time=start, pitch=msg.note))

    return sorted(notes, key=lambda n: n.start_time)
