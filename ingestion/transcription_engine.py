"""
ingestion/transcription_engine.py — High-level orchestrator for audio → notes.

TranscriptionEngine wires together the production pipeline:

    audio file
        │
        ├─ load_audio()        [ingestion/audio_loader.py — I/O boundary]
        │       ↓
        ├─ run_pipeline()      [core/transcription/pipeline.py — pure DSP]
        │       ↓
        └─ notes_to_midi()     [ingestion/midi_export.py — MIDI output]

This module is in `ingestion/` because it performs file I/O (audio loading,
MIDI writing). The transcription logic itself is pure and lives in `core/`.

Usage:
    engine = TranscriptionEngine()
    result = engine.transcribe_file("/path/to/take.wav", midi_output_path="/tmp/take.mid")
    print(result.transcription.bpm, len(result.transcription.notes))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from core.config import DEFAULT_CONFIG, TranscriptionConfig
from core.transcription.pipeline import run_pipeline
from core.transcription.types import Transcription
from ingestion.audio_loader import DEFAULT_DURATION, load_audio
from ingestion.midi_export import notes_to_midi

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileTranscription:
    """Output of TranscriptionEngine.transcribe_file().

    Attributes:
        file_path:          Source audio file.
        transcription:      Pipeline result (notes, tempo, intermediate stages).
        midi_path:          Where the MIDI file was written, or None.
        processing_time_ms: Wall-clock time for load + transcription + export.
    """

    file_path: str
    transcription: Transcription
    midi_path: str | None = None
    processing_time_ms: float = 0.0


class TranscriptionEngine:
    """Single integration point between audio I/O, the DSP core and MIDI output.

    Holds only an immutable TranscriptionConfig, so one instance can be
    shared between request handlers.

    Example:
        engine = TranscriptionEngine(SENSITIVE_CONFIG)
        result = engine.transcribe_file("/path/to/riff.flac", duration=10.0)
    """

    def __init__(self, config: TranscriptionConfig = DEFAULT_CONFIG) -> None:
        self._config = config

    @property
    def config(self) -> TranscriptionConfig:
        return self._config

    def transcribe_file(
        self,
        path: str | Path,
        *,
        duration: float | None = DEFAULT_DURATION,
        config: TranscriptionConfig | None = None,
        midi_output_path: str | Path | None = None,
    ) -> FileTranscription:
        """Load an audio file, transcribe it and optionally export MIDI.

        Args:
            path:             Path to an audio file (mp3, wav, flac, etc.)
            duration:         Maximum seconds to load (default 30 s, None = all).
            config:           Per-call override of the engine config.
            midi_output_path: If given and notes were found, write a MIDI file.

        Returns:
            FileTranscription with the pipeline result and MIDI location.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the extension is unsupported or the decoded audio
                        is malformed (InvalidWaveformError).
            RuntimeError: If the audio cannot be decoded.
        """
        t0 = time.perf_counter()
        cfg = config or self._config

        y, sr = load_audio(path, duration=duration)
        transcription = run_pipeline(y, sr, cfg)

        midi_path: str | None = None
        if midi_output_path is not None:
            midi_path = self.export_midi(transcription, midi_output_path)

        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        logger.info(
            "Transcribed %s: %d notes at %.0f BPM in %.0f ms",
            Path(path).name,
            len(transcription.notes),
            transcription.bpm,
            elapsed_ms,
        )
        return FileTranscription(
            file_path=str(path),
            transcription=transcription,
            midi_path=midi_path,
            processing_time_ms=elapsed_ms,
        )

    def export_midi(
        self,
        transcription: Transcription,
        output_path: str | Path,
    ) -> str | None:
        """Write a transcription's notes to a MIDI file at its estimated tempo.

        Note lengths follow the grid the notes were quantized to, so a
        transcription made with steps_per_beat=2 gets eighth-note lengths.

        Returns:
            The written path, or None when there are no notes to write.
        """
        if not transcription.notes:
            logger.warning("No notes transcribed — skipping MIDI export to %s", output_path)
            return None
        notes_to_midi(
            transcription.notes,
            bpm=transcription.bpm,
            steps_per_beat=transcription.steps_per_beat,
            output_path=output_path,
        )
        return str(output_path)
