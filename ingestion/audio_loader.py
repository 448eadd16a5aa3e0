"""
ingestion/audio_loader.py — File I/O boundary for audio loading.

This is the ONLY module in the transcription pipeline that reads audio from
disk. Everything downstream (core/transcription/) takes pre-loaded (y, sr)
arrays — never file paths.

Usage:
    from ingestion.audio_loader import load_audio
    y, sr = load_audio("/path/to/take.wav", duration=30.0)
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

logger = logging.getLogger(__name__)

# Supported audio file extensions (must be loadable by librosa / soundfile)
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus"}
)

# Default: load only the first N seconds to keep transcription interactive
DEFAULT_DURATION: float = 30.0


def load_audio(
    path: str | Path,
    *,
    duration: float | None = DEFAULT_DURATION,
    sr: int | None = None,
) -> tuple[np.ndarray, int]:
    """Load an audio file as a mono waveform and return (y, sr).

    Multi-channel files are downmixed to mono here, so the core pipeline
    only ever sees a 1-D array.

    Args:
        path: Absolute or relative path to an audio file.
              Supported formats: mp3, wav, flac, aiff, ogg, m4a, opus.
        duration: Maximum seconds to load. None loads the entire file.
        sr: Target sample rate in Hz. None preserves the native rate.

    Returns:
        (y, sr) — 1-D float32 numpy array of samples and the sample rate.

    Raises:
        FileNotFoundError: File does not exist at the given path.
        ValueError: File extension is not a supported audio format,
                    or duration is not positive.
        RuntimeError: librosa/soundfile could not decode the file
                      (corrupted, truncated, DRM-protected, etc.).
    """
    import librosa  # deferred to allow testing without audio backend

    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")

    if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
        raise ValueError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )

    if duration is not None and duration <= 0:
        raise ValueError(f"duration must be positive, got {duration}")

    try:
        y, loaded_sr = librosa.load(
            file_path,
            sr=sr,
            mono=True,
            duration=duration,
            offset=0.0,
        )
    except Exception as exc:
        raise RuntimeError(
            f"Failed to decode audio file {file_path.name!r}: {exc}"
        ) from exc

    y = np.asarray(y, dtype=np.float32)
    if y.ndim > 1:
        y = np.mean(y, axis=0)

    logger.debug("Loaded %s: %d samples at %d Hz", file_path.name, y.size, int(loaded_sr))
    return y, int(loaded_sr)
