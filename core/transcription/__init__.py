"""
core/transcription — Pure audio → note-sequence transcription.

All functions are pure: they take (y: np.ndarray, sr: int) or the output of
an earlier stage and return fresh, immutable results. No file I/O — that
lives in ingestion/audio_loader.py.

Public API:
    Types:     Frame, SpectrumFrame, PitchedNote, QuantizedNote, Transcription
    Errors:    InvalidWaveformError
    Pipeline:  transcribe, run_pipeline, validate_waveform
    Helpers:   pitch_to_lane, midi_to_name
"""

from core.transcription.lanes import pitch_to_lane
from core.transcription.pipeline import run_pipeline, transcribe, validate_waveform
from core.transcription.types import (
    Frame,
    InvalidWaveformError,
    PitchedNote,
    QuantizedNote,
    SpectrumFrame,
    Transcription,
    midi_to_name,
)

__all__ = [
    "Frame",
    "SpectrumFrame",
    "PitchedNote",
    "QuantizedNote",
    "Transcription",
    "InvalidWaveformError",
    "transcribe",
    "run_pipeline",
    "validate_waveform",
    "pitch_to_lane",
    "midi_to_name",
]
