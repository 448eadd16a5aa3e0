"""
api/schemas/transcribe.py — Pydantic request/response schemas for transcription.

Covers:
    /transcribe  — TranscribeRequest / TranscribeResponse
"""

from pydantic import BaseModel, Field, field_validator

from core.config import VALID_SPECTRUM_METHODS

# ---------------------------------------------------------------------------
# Shared sub-schemas
# ---------------------------------------------------------------------------


class QuantizedNoteOut(BaseModel):
    """A single transcribed note on the tempo grid."""

    start_time: float = Field(..., ge=0.0)
    pitch: int = Field(..., ge=0, le=127)
    pitch_name: str
    lane: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# /transcribe
# ---------------------------------------------------------------------------


class TranscribeRequest(BaseModel):
    """Request body for POST /transcribe.

    Optional tuning fields left as None keep the server's defaults.
    """

    file_path: str = Field(
        ...,
        description="Absolute path to audio file on the server filesystem.",
    )
    duration: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Maximum seconds to transcribe (default 30s).",
    )
    onset_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    min_gap_sec: float | None = Field(default=None, ge=0.0, le=1.0)
    fallback_bpm: float | None = Field(default=None, gt=0.0, le=400.0)
    spectrum_method: str | None = Field(default=None)
    lanes: int = Field(default=8, ge=1, le=32)
    midi_output_path: str | None = Field(
        default=None,
        description="If set, also write a MIDI file to this server path.",
    )

    @field_validator("spectrum_method")
    @classmethod
    def validate_spectrum_method(cls, v: str | None) -> str | None:
        if v is not None and v not in VALID_SPECTRUM_METHODS:
            raise ValueError(
                f"spectrum_method must be one of: {', '.join(sorted(VALID_SPECTRUM_METHODS))}"
            )
        return v


class TranscribeResponse(BaseModel):
    """Response body for POST /transcribe."""

    notes: list[QuantizedNoteOut]
    note_count: int
    bpm: float
    tempo_estimated: bool
    step_sec: float
    onset_count: int
    duration_sec: float
    sample_rate: int
    midi_path: str | None = None
    processing_time_ms: float
