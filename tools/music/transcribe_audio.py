"""
transcribe_audio tool — onset + pitch transcription quantized to a tempo grid.

Turns an audio file into a sequence of discrete notes: spectral-flux onsets,
autocorrelation pitch per onset, then snapping to a sixteenth-note grid at
the tempo inferred from inter-onset intervals.

Output notes are suitable for:
  - Falling-note / rhythm-game charts (each note carries a display lane)
  - MIDI export (pass midi_output_path)
  - Human-readable display (pitch names, grid-aligned start times)

Best results on:
  - Monophonic or near-monophonic material: plucked or struck single lines
  - Clear attacks separated by at least ~80 ms
"""

from typing import Any

from core.transcription.lanes import DEFAULT_LANES, pitch_to_lane
from tools.base import ToolParameter, ToolResult, TranscriptionTool


class TranscribeAudio(TranscriptionTool):
    """Transcribe a monophonic audio file into grid-quantized notes.

    Example:
        tool = TranscribeAudio()
        result = tool(file_path="/path/to/riff.wav")
        # Returns: notes=[{start_time: 0.0, pitch: 69, pitch_name: "A4", lane: 4}, ...]
    """

    @property
    def name(self) -> str:
        return "transcribe_audio"

    @property
    def description(self) -> str:
        return (
            "Transcribe a monophonic audio file into a note sequence. "
            "Detects note attacks with spectral flux, estimates each note's pitch by "
            "autocorrelation, infers the tempo from the spacing between notes and snaps "
            "start times to a sixteenth-note grid. Returns start times in seconds, MIDI "
            "pitch numbers, note names (e.g. 'A4') and display lanes, plus the estimated BPM. "
            "Optionally writes a MIDI file. Requires .mp3 .wav .flac .aiff .ogg .m4a file."
        )

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="file_path",
                type=str,
                description="Absolute path to audio file on local filesystem.",
                required=True,
            ),
            ToolParameter(
                name="duration",
                type=float,
                description="Max seconds to transcribe (default 30.0).",
                required=False,
                default=30.0,
            ),
            ToolParameter(
                name="onset_threshold",
                type=float,
                description="Normalized spectral-flux threshold in [0, 1] (default 0.2).",
                required=False,
                default=0.2,
            ),
            ToolParameter(
                name="midi_output_path",
                type=str,
                description="If given, write the transcription to this .mid path.",
                required=False,
                default=None,
            ),
        ]

    def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the transcription pipeline.

        Returns:
            ToolResult.data with keys:
                notes (list[dict]): start_time, pitch, pitch_name, lane.
                note_count (int): Total notes transcribed.
                bpm (float): Tempo of the quantization grid.
                tempo_estimated (bool): False when the fallback tempo was used.
                step_sec (float): Grid step in seconds.
                midi_path (str | None): Written MIDI file, if requested.
        """
        file_path: str = (kwargs.get("file_path") or "").strip()
        duration: float = float(kwargs.get("duration") or 30.0)
        threshold = kwargs.get("onset_threshold")
        midi_output_path = kwargs.get("midi_output_path") or None

        if not file_path:
            return ToolResult(success=False, error="file_path cannot be empty")

        try:
            from ingestion.transcription_engine import TranscriptionEngine

            engine = TranscriptionEngine()
            config = engine.config.with_overrides(
                onset_threshold=float(threshold) if threshold is not None else None
            )
            result = engine.transcribe_file(
                file_path,
                duration=duration,
                config=config,
                midi_output_path=midi_output_path,
            )
        except FileNotFoundError as exc:
            return ToolResult(success=False, error=f"File not found: {exc}")
        except ValueError as exc:
            return ToolResult(success=False, error=str(exc))
        except RuntimeError as exc:
            return ToolResult(success=False, error=f"Transcription failed: {exc}")

        transcription = result.transcription
        notes_data = [
            {
                "start_time": round(n.start_time, 4),
                "pitch": n.pitch,
                "pitch_name": n.pitch_name,
                "lane": pitch_to_lane(n.pitch, lanes=DEFAULT_LANES),
            }
            for n in transcription.notes
        ]

        return ToolResult(
            success=True,
            data={
                "notes": notes_data,
                "note_count": len(notes_data),
                "bpm": transcription.bpm,
                "tempo_estimated": transcription.tempo_estimated,
                "step_sec": round(transcription.step_sec, 6),
                "midi_path": result.midi_path,
            },
            metadata={
                "file": file_path,
                "algorithm": "spectral-flux onsets + autocorrelation pitch",
                "processing_time_ms": round(result.processing_time_ms, 1),
            },
        )
