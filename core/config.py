"""
Configuration dataclasses for the transcription pipeline.

These immutable config objects decouple parameter passing from function signatures,
making it easier to define standard configurations and reuse them across pipelines.
"""

from dataclasses import dataclass, replace
from typing import Any

# Allowlist of spectral magnitude methods.
# Kept as a module constant so core/ stays pure (no numpy import at config time).
VALID_SPECTRUM_METHODS: frozenset[str] = frozenset({"fft", "strided_dft"})

VALID_PITCH_ANCHORS: frozenset[str] = frozenset({"frame", "onset"})


@dataclass(frozen=True)
class TranscriptionConfig:
    """
    Configuration for audio → note-sequence transcription.

    Immutable configuration object that can be reused across multiple
    transcribe() calls. Groups the parameters of every pipeline stage.

    Attributes:
        frame_size: Samples per analysis frame. Defaults to 2048.
        hop_size: Samples between consecutive frame starts. Defaults to 512.
        n_bins: Magnitude bins kept per frame. Defaults to 512.
        spectrum_method: "fft" (full-resolution real FFT, first n_bins bins)
            or "strided_dft" (direct DFT over every dft_stride-th sample).
        dft_stride: Input subsampling stride for "strided_dft". Defaults to 4.
        onset_threshold: Normalized spectral-flux level a peak must exceed.
        autocorr_min_hz: Lowest frequency searched by autocorrelation (sets maxLag).
        autocorr_max_hz: Highest frequency searched by autocorrelation (sets minLag).
        silence_rms: Windows quieter than this RMS have no pitch.
        band_low_hz: Estimates at or below this frequency are rejected.
        band_high_hz: Estimates at or above this frequency are rejected.
        pitch_window: Samples in the autocorrelation window. Defaults to frame_size.
        pitch_anchor: "frame" centres the pitch window on the onset's analysis
            frame; "onset" centres it on the onset time itself.
        min_gap_sec: Notes closer than this to the previous kept note are dropped.
        min_interval_sec: Inter-onset intervals at or below this are ignored
            by tempo estimation.
        tempo_low_bpm: Lower bound of the tempo folding range (inclusive).
        tempo_high_bpm: Upper bound of the tempo folding range (exclusive).
        fallback_bpm: Tempo used when estimation has insufficient data.
        steps_per_beat: Quantization grid subdivision (4 = sixteenth notes).
        collapse_epsilon_sec: Snapped notes closer than this are collapsed.

    Example:
        >>> config = TranscriptionConfig(onset_threshold=0.1)
        >>> notes = transcribe(y, sr, config=config)
    """

    frame_size: int = 2048
    hop_size: int = 512
    n_bins: int = 512
    spectrum_method: str = "fft"
    dft_stride: int = 4
    onset_threshold: float = 0.2
    autocorr_min_hz: float = 80.0
    autocorr_max_hz: float = 1000.0
    silence_rms: float = 0.002
    band_low_hz: float = 80.0
    band_high_hz: float = 2000.0
    pitch_window: int | None = None
    pitch_anchor: str = "frame"
    min_gap_sec: float = 0.08
    min_interval_sec: float = 0.02
    tempo_low_bpm: float = 60.0
    tempo_high_bpm: float = 180.0
    fallback_bpm: float = 120.0
    steps_per_beat: int = 4
    collapse_epsilon_sec: float = 1e-4

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.frame_size < 2:
            raise ValueError(f"frame_size must be at least 2, got {self.frame_size}")
        if self.hop_size <= 0:
            raise ValueError(f"hop_size must be positive, got {self.hop_size}")
        if self.n_bins <= 0:
            raise ValueError(f"n_bins must be positive, got {self.n_bins}")
        if self.spectrum_method not in VALID_SPECTRUM_METHODS:
            raise ValueError(
                f"Unknown spectrum_method {self.spectrum_method!r}, "
                f"valid options: {sorted(VALID_SPECTRUM_METHODS)}"
            )
        if self.spectrum_method == "fft" and self.n_bins > self.frame_size // 2 + 1:
            raise ValueError(
                f"n_bins ({self.n_bins}) exceeds the {self.frame_size // 2 + 1} "
                f"bins of a {self.frame_size}-sample real FFT"
            )
        if self.dft_stride <= 0:
            raise ValueError(f"dft_stride must be positive, got {self.dft_stride}")
        if self.onset_threshold < 0:
            raise ValueError(f"onset_threshold must be non-negative, got {self.onset_threshold}")
        if not 0 < self.autocorr_min_hz < self.autocorr_max_hz:
            raise ValueError(
                f"autocorrelation range must satisfy 0 < min < max, "
                f"got {self.autocorr_min_hz}–{self.autocorr_max_hz} Hz"
            )
        if self.silence_rms < 0:
            raise ValueError(f"silence_rms must be non-negative, got {self.silence_rms}")
        if not 0 <= self.band_low_hz < self.band_high_hz:
            raise ValueError(
                f"pitch band must satisfy 0 <= low < high, "
                f"got {self.band_low_hz}–{self.band_high_hz} Hz"
            )
        if self.pitch_window is not None and self.pitch_window < 2:
            raise ValueError(f"pitch_window must be at least 2, got {self.pitch_window}")
        if self.pitch_anchor not in VALID_PITCH_ANCHORS:
            raise ValueError(
                f"Unknown pitch_anchor {self.pitch_anchor!r}, "
                f"valid options: {sorted(VALID_PITCH_ANCHORS)}"
            )
        if self.min_gap_sec < 0:
            raise ValueError(f"min_gap_sec must be non-negative, got {self.min_gap_sec}")
        if self.min_interval_sec < 0:
            raise ValueError(
                f"min_interval_sec must be non-negative, got {self.min_interval_sec}"
            )
        if not 0 < self.tempo_low_bpm or self.tempo_high_bpm < 2 * self.tempo_low_bpm:
            raise ValueError(
                f"tempo range must be positive and span at least one octave, "
                f"got [{self.tempo_low_bpm}, {self.tempo_high_bpm})"
            )
        if self.fallback_bpm <= 0:
            raise ValueError(f"fallback_bpm must be positive, got {self.fallback_bpm}")
        if self.steps_per_beat <= 0:
            raise ValueError(f"steps_per_beat must be positive, got {self.steps_per_beat}")
        if self.collapse_epsilon_sec < 0:
            raise ValueError(
                f"collapse_epsilon_sec must be non-negative, got {self.collapse_epsilon_sec}"
            )

    @property
    def effective_pitch_window(self) -> int:
        """Pitch window length in samples (falls back to frame_size)."""
        return self.pitch_window if self.pitch_window is not None else self.frame_size

    def with_overrides(self, **overrides: Any) -> "TranscriptionConfig":
        """Return a copy with the given fields replaced (validated again).

        None values are ignored so optional request fields can be passed
        straight through.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = TranscriptionConfig()
"""Default configuration: 2048/512 frames, FFT magnitudes, 0.2 onset threshold."""

SENSITIVE_CONFIG = TranscriptionConfig(onset_threshold=0.1, min_gap_sec=0.05)
"""Lower onset threshold and gap for soft or fast passages."""

LEGACY_CONFIG = TranscriptionConfig(spectrum_method="strided_dft", pitch_anchor="onset")
"""Strided DFT magnitudes and onset-centred pitch windows, for reproducing older results."""
