"""
Transcribe an audio file from the command line.

Prints the detected tempo and note list, optionally writing a MIDI file.

Usage:
    python scripts/transcribe_file.py take.wav
    python scripts/transcribe_file.py take.wav --midi take.mid --threshold 0.15
    python scripts/transcribe_file.py take.wav --json > notes.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_CONFIG, LEGACY_CONFIG  # noqa: E402
from core.transcription.lanes import pitch_to_lane  # noqa: E402
from ingestion.transcription_engine import TranscriptionEngine  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Audio → quantized note sequence")
    p.add_argument("path", help="Audio file (mp3, wav, flac, aiff, ogg, m4a, opus)")
    p.add_argument(
        "--midi",
        metavar="OUTPUT_MID",
        default=None,
        help="Write the transcription to this MIDI file",
    )
    p.add_argument(
        "--threshold",
        type=float,
        default=None,
        help=f"Onset threshold (default: {DEFAULT_CONFIG.onset_threshold})",
    )
    p.add_argument(
        "--duration",
        type=float,
        default=30.0,
        metavar="SECONDS",
        help="Maximum seconds to load (default: 30.0)",
    )
    p.add_argument(
        "--legacy",
        action="store_true",
        help="Use the strided DFT and onset-centred pitch windows",
    )
    p.add_argument(
        "--json",
        action="store_true",
        help="Print notes as JSON instead of a table",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Log pipeline stages",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    base = LEGACY_CONFIG if args.legacy else DEFAULT_CONFIG
    engine = TranscriptionEngine(base.with_overrides(onset_threshold=args.threshold))

    try:
        result = engine.transcribe_file(
            args.path,
            duration=args.duration,
            midi_output_path=args.midi,
        )
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    transcription = result.transcription
    if args.json:
        payload = {
            "bpm": transcription.bpm,
            "tempo_estimated": transcription.tempo_estimated,
            "notes": [
                {"start_time": n.start_time, "pitch": n.pitch, "pitch_name": n.pitch_name}
                for n in transcription.notes
            ],
        }
        print(json.dumps(payload, indent=2))
        return 0

    tempo_note = "" if transcription.tempo_estimated else " (fallback)"
    print(f"Tempo: {transcription.bpm:.0f} BPM{tempo_note}")
    print(f"Notes: {len(transcription.notes)}")
    for n in transcription.notes:
        lane = pitch_to_lane(n.pitch)
        print(f"  {n.start_time:8.3f}s  {n.pitch:3d}  {n.pitch_name:<4}  lane {lane}")
    if result.midi_path:
        print(f"MIDI written to {result.midi_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
