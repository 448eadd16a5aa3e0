"""
Tests for api/routes/transcribe.py and the app health check.

Covers:
    POST /transcribe  — audio → quantized notes
    GET  /health      — liveness

Strategy:
    - TestClient (synchronous) against the real FastAPI app.
    - Engine patched via patch("api.routes.transcribe._get_engine") so no
      audio files are loaded; the mock carries the real DEFAULT_CONFIG so
      request overrides are validated for real.
    - Error-path tests inject exceptions via the mock's transcribe_file.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from api.main import app
from core.config import DEFAULT_CONFIG
from core.transcription.types import PitchedNote, QuantizedNote, Transcription
from ingestion.transcription_engine import FileTranscription

client = TestClient(app)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_transcription() -> Transcription:
    """Four A4 quarter notes at 120 BPM."""
    times = (0.0, 0.5, 1.0, 1.5)
    pitched = tuple(PitchedNote(t + 0.02, 69) for t in times)
    return Transcription(
        notes=tuple(QuantizedNote(t, 69) for t in times),
        bpm=120.0,
        tempo_estimated=True,
        step_sec=0.125,
        onset_times=tuple(n.time for n in pitched),
        pitched_notes=pitched,
        deduplicated_notes=pitched,
        duration_sec=2.2,
        sample_rate=44100,
    )


def _mock_engine(**transcribe_kwargs) -> MagicMock:
    engine = MagicMock()
    engine.config = DEFAULT_CONFIG
    if transcribe_kwargs:
        engine.transcribe_file.configure_mock(**transcribe_kwargs)
    else:
        engine.transcribe_file.return_value = FileTranscription(
            file_path="/audio/take.wav",
            transcription=_make_transcription(),
            processing_time_ms=12.5,
        )
    return engine


# ---------------------------------------------------------------------------
# POST /transcribe: happy path
# ---------------------------------------------------------------------------


class TestTranscribeSuccess:
    def test_returns_200(self) -> None:
        with patch("api.routes.transcribe._get_engine", return_value=_mock_engine()):
            response = client.post("/transcribe", json={"file_path": "/audio/take.wav"})
        assert response.status_code == 200

    def test_response_body(self) -> None:
        with patch("api.routes.transcribe._get_engine", return_value=_mock_engine()):
            body = client.post("/transcribe", json={"file_path": "/audio/take.wav"}).json()

        assert body["note_count"] == 4
        assert body["bpm"] == 120.0
        assert body["tempo_estimated"] is True
        assert body["step_sec"] == 0.125
        assert body["onset_count"] == 4
        assert body["sample_rate"] == 44100
        assert body["midi_path"] is None
        assert body["notes"][1] == {
            "start_time": 0.5,
            "pitch": 69,
            "pitch_name": "A4",
            "lane": 4,
        }

    def test_lanes_parameter(self) -> None:
        with patch("api.routes.transcribe._get_engine", return_value=_mock_engine()):
            body = client.post(
                "/transcribe", json={"file_path": "/audio/take.wav", "lanes": 1}
            ).json()
        assert {n["lane"] for n in body["notes"]} == {0}

    def test_overrides_forwarded_as_config(self) -> None:
        engine = _mock_engine()
        with patch("api.routes.transcribe._get_engine", return_value=engine):
            client.post(
                "/transcribe",
                json={
                    "file_path": "/audio/take.wav",
                    "duration": 12.0,
                    "onset_threshold": 0.35,
                    "spectrum_method": "strided_dft",
                },
            )

        _, kwargs = engine.transcribe_file.call_args
        assert kwargs["duration"] == 12.0
        assert kwargs["config"].onset_threshold == 0.35
        assert kwargs["config"].spectrum_method == "strided_dft"
        assert kwargs["config"].min_gap_sec == DEFAULT_CONFIG.min_gap_sec

    def test_defaults_keep_engine_config(self) -> None:
        engine = _mock_engine()
        with patch("api.routes.transcribe._get_engine", return_value=engine):
            client.post("/transcribe", json={"file_path": "/audio/take.wav"})

        _, kwargs = engine.transcribe_file.call_args
        assert kwargs["config"] == DEFAULT_CONFIG
        assert kwargs["midi_output_path"] is None


# ---------------------------------------------------------------------------
# POST /transcribe: error mapping
# ---------------------------------------------------------------------------


class TestTranscribeErrors:
    def test_file_not_found_returns_422(self) -> None:
        engine = _mock_engine(side_effect=FileNotFoundError("Audio file not found: /x.wav"))
        with patch("api.routes.transcribe._get_engine", return_value=engine):
            response = client.post("/transcribe", json={"file_path": "/x.wav"})
        assert response.status_code == 422
        assert "not found" in response.json()["detail"]

    def test_unsupported_format_returns_422(self) -> None:
        engine = _mock_engine(side_effect=ValueError("Unsupported audio format '.pdf'"))
        with patch("api.routes.transcribe._get_engine", return_value=engine):
            response = client.post("/transcribe", json={"file_path": "/x.pdf"})
        assert response.status_code == 422

    def test_decode_failure_returns_500(self) -> None:
        engine = _mock_engine(side_effect=RuntimeError("Failed to decode audio file"))
        with patch("api.routes.transcribe._get_engine", return_value=engine):
            response = client.post("/transcribe", json={"file_path": "/x.mp3"})
        assert response.status_code == 500
        assert response.json()["detail"].startswith("Transcription failed")

    def test_midi_write_failure_returns_500(self) -> None:
        engine = _mock_engine(side_effect=PermissionError("read-only filesystem"))
        with patch("api.routes.transcribe._get_engine", return_value=engine):
            response = client.post(
                "/transcribe",
                json={"file_path": "/x.wav", "midi_output_path": "/ro/take.mid"},
            )
        assert response.status_code == 500
        assert response.json()["detail"].startswith("MIDI export failed")

    def test_invalid_spectrum_method_returns_422(self) -> None:
        response = client.post(
            "/transcribe", json={"file_path": "/x.wav", "spectrum_method": "cqt"}
        )
        assert response.status_code == 422

    def test_threshold_out_of_range_returns_422(self) -> None:
        response = client.post(
            "/transcribe", json={"file_path": "/x.wav", "onset_threshold": 1.5}
        )
        assert response.status_code == 422

    def test_missing_file_path_returns_422(self) -> None:
        assert client.post("/transcribe", json={}).status_code == 422


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
