"""
api/routes/transcribe.py — Audio transcription endpoint.

Endpoints:
    POST /transcribe  — Onset + pitch transcription quantized to the tempo grid

Accepts a file path on the server filesystem and delegates to
TranscriptionEngine in ingestion/transcription_engine.py. The handler is a
plain `def`, so FastAPI runs the CPU-bound pipeline in its threadpool.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from api.schemas.transcribe import QuantizedNoteOut, TranscribeRequest, TranscribeResponse
from core.transcription.lanes import pitch_to_lane
from ingestion.transcription_engine import TranscriptionEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transcribe"])

# Shared engine instance, stateless apart from its immutable config
_engine: TranscriptionEngine | None = None


def _get_engine() -> TranscriptionEngine:
    global _engine
    if _engine is None:
        _engine = TranscriptionEngine()
    return _engine


# ---------------------------------------------------------------------------
# POST /transcribe
# ---------------------------------------------------------------------------


@router.post("/transcribe", response_model=TranscribeResponse)
def transcribe_audio(request: TranscribeRequest) -> TranscribeResponse:
    """Transcribe an audio file into a quantized note sequence.

    Args:
        request: TranscribeRequest with file_path, duration and optional
                 pipeline overrides.

    Returns:
        TranscribeResponse with notes, estimated tempo and grid step.

    Raises:
        422: File not found, unsupported format, invalid overrides or
             malformed audio.
        500: Audio decoding or MIDI write failure.
    """
    engine = _get_engine()
    try:
        config = engine.config.with_overrides(
            onset_threshold=request.onset_threshold,
            min_gap_sec=request.min_gap_sec,
            fallback_bpm=request.fallback_bpm,
            spectrum_method=request.spectrum_method,
        )
        result = engine.transcribe_file(
            request.file_path,
            duration=request.duration,
            config=config,
            midi_output_path=request.midi_output_path,
        )
    except FileNotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        logger.error("Transcription failed: %s", exc)
        raise HTTPException(status_code=500, detail=f"Transcription failed: {exc}") from exc
    except OSError as exc:
        logger.error("MIDI export failed: %s", exc)
        raise HTTPException(status_code=500, detail=f"MIDI export failed: {exc}") from exc

    transcription = result.transcription
    notes_out = [
        QuantizedNoteOut(
            start_time=n.start_time,
            pitch=n.pitch,
            pitch_name=n.pitch_name,
            lane=pitch_to_lane(n.pitch, lanes=request.lanes),
        )
        for n in transcription.notes
    ]

    return TranscribeResponse(
        notes=notes_out,
        note_count=len(notes_out),
        bpm=transcription.bpm,
        tempo_estimated=transcription.tempo_estimated,
        step_sec=transcription.step_sec,
        onset_count=len(transcription.onset_times),
        duration_sec=transcription.duration_sec,
        sample_rate=transcription.sample_rate,
        midi_path=result.midi_path,
        processing_time_ms=result.processing_time_ms,
    )
