import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient


def _make_client(**overrides):
    from src.api.app import create_app
    from src.api.settings import APISettings, get_settings

    get_settings.cache_clear()  # type: ignore
    values = dict(
        api_keys=["test-key"],
        default_threshold_db=-40.0,
        default_min_silence_ms=100.0,
        default_padding_ms=0.0,
        default_chunk_ms=10.0,
    )
    values.update(overrides)
    settings = APISettings(**values)

    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


@pytest.fixture()
def api_client():
    return _make_client()


def _auth_headers():
    return {"X-API-Key": "test-key"}


def _wav_bytes(audio: np.ndarray, sample_rate: int) -> bytes:
    buffer = io.BytesIO()
    sf.write(buffer, audio, sample_rate, format="WAV", subtype="FLOAT")
    return buffer.getvalue()


def _speech_after_silence(sample_rate: int = 8000) -> np.ndarray:
    half = sample_rate // 2
    return np.concatenate([np.zeros(half), np.full(half, 0.5)]).astype(np.float32)


def test_auth_required(api_client):
    resp = api_client.get("/healthz")
    assert resp.status_code == 401


def test_health_ok(api_client):
    resp = api_client.get("/healthz", headers=_auth_headers())
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["version"] == "1.0.0"


def test_welcome_public(api_client):
    resp = api_client.get("/welcome")
    assert resp.status_code == 200
    assert "docs" in resp.json()


def test_open_api_when_no_keys_configured():
    client = _make_client(api_keys=[])
    assert client.get("/healthz").status_code == 200


def test_analyze_upload(api_client):
    payload = _wav_bytes(_speech_after_silence(), 8000)
    resp = api_client.post(
        "/v1/analyze",
        headers=_auth_headers(),
        files={"file": ("speech.wav", payload, "audio/wav")},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["sample_rate"] == 8000
    assert body["duration"] == pytest.approx(1.0)
    assert body["settings"]["threshold"] == -40.0
    assert len(body["intervals"]) == 1
    assert body["intervals"][0]["start"] == pytest.approx(0.5)
    assert body["intervals"][0]["end"] == pytest.approx(1.0)
    assert "channels" not in body


def test_analyze_upload_with_form_overrides(api_client):
    payload = _wav_bytes(_speech_after_silence(), 8000)
    resp = api_client.post(
        "/v1/analyze",
        headers=_auth_headers(),
        files={"file": ("speech.wav", payload, "audio/wav")},
        data={"threshold": "-20", "min_silence_duration": "200", "padding": "50", "chunk_size": "20"},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["settings"] == {
        "threshold": -20.0,
        "min_silence_duration": 200.0,
        "padding": 50.0,
        "chunk_size": 20.0,
    }
    # 25 silent 20 ms chunks, padded by 2 chunks into the tone.
    assert body["intervals"][0]["start"] == pytest.approx(0.54)


def test_analyze_upload_per_channel(api_client):
    stereo = np.stack([np.full(8000, 0.5), np.zeros(8000)], axis=1).astype(np.float32)
    resp = api_client.post(
        "/v1/analyze",
        headers=_auth_headers(),
        files={"file": ("stereo.wav", _wav_bytes(stereo, 8000), "audio/wav")},
        data={"per_channel": "true"},
    )
    assert resp.status_code == 200, resp.text
    channels = resp.json()["channels"]
    assert len(channels) == 2
    assert channels[0] == [{"start": 0.0, "end": pytest.approx(1.0)}]
    assert channels[1] == []


def test_analyze_upload_rejects_garbage(api_client):
    resp = api_client.post(
        "/v1/analyze",
        headers=_auth_headers(),
        files={"file": ("noise.wav", b"definitely not audio", "audio/wav")},
    )
    assert resp.status_code == 400


def test_analyze_upload_enforces_size_limit():
    client = _make_client(max_upload_bytes=100)
    payload = _wav_bytes(_speech_after_silence(), 8000)
    resp = client.post(
        "/v1/analyze",
        headers=_auth_headers(),
        files={"file": ("speech.wav", payload, "audio/wav")},
    )
    assert resp.status_code == 413


def test_analyze_samples_enforces_sample_limit():
    client = _make_client(max_samples=100)
    resp = client.post(
        "/v1/analyze/samples",
        headers=_auth_headers(),
        json={"samples": [0.5] * 101, "sample_rate": 8000},
    )
    assert resp.status_code == 413
    assert "101 samples" in resp.json()["detail"]

    resp = client.post(
        "/v1/analyze/samples",
        headers=_auth_headers(),
        json={"samples": [0.5] * 100, "sample_rate": 8000},
    )
    assert resp.status_code == 200


def test_analyze_samples_with_amplitude_threshold(api_client):
    samples = [0.0] * 4000 + [0.5] * 4000
    resp = api_client.post(
        "/v1/analyze/samples",
        headers=_auth_headers(),
        json={
            "samples": samples,
            "sample_rate": 8000,
            "threshold_amplitude": 0.01,
            "min_silence_duration": 100,
            "padding": 0,
            "chunk_size": 10,
        },
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["settings"]["threshold"] == pytest.approx(-40.0)
    assert body["intervals"] == [{"start": pytest.approx(0.5), "end": pytest.approx(1.0)}]


def test_analyze_samples_all_silent_is_success(api_client):
    resp = api_client.post(
        "/v1/analyze/samples",
        headers=_auth_headers(),
        json={"samples": [0.0] * 8000, "sample_rate": 8000},
    )
    assert resp.status_code == 200
    assert resp.json()["intervals"] == []


def test_analyze_samples_rejects_both_thresholds(api_client):
    resp = api_client.post(
        "/v1/analyze/samples",
        headers=_auth_headers(),
        json={"samples": [0.1], "sample_rate": 8000, "threshold": -40, "threshold_amplitude": 0.01},
    )
    assert resp.status_code == 422


@pytest.mark.parametrize(
    "payload",
    [
        {"samples": [], "sample_rate": 8000},
        {"samples": [0.1, 0.2], "sample_rate": 0},
        {"samples": [0.1, 0.2], "sample_rate": 8000, "chunk_size": 0},
        {"samples": [0.1, 0.2], "sample_rate": 8000, "chunk_size": 0.01},
        {"samples": [0.1, 0.2], "sample_rate": 8000, "padding": -1},
    ],
)
def test_analyze_samples_invalid_configuration(api_client, payload):
    resp = api_client.post("/v1/analyze/samples", headers=_auth_headers(), json=payload)
    assert resp.status_code == 422
    assert isinstance(resp.json()["detail"], str)


def test_metrics_secured(api_client):
    assert api_client.get("/metrics").status_code == 401
    api_client.post(
        "/v1/analyze/samples",
        headers=_auth_headers(),
        json={"samples": [0.5] * 800, "sample_rate": 8000},
    )
    resp = api_client.get("/metrics", headers=_auth_headers())
    assert resp.status_code == 200
    assert 'voicespan_http_requests_total{path="/v1/analyze/samples",method="POST",status="200"}' in resp.text
    assert "voicespan_http_request_seconds_bucket" in resp.text
    assert "api_requests_total" not in resp.text
    assert 'voicespan_analyses_total{status="success"}' in resp.text
