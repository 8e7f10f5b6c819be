"""Tests for the HTTP API."""

import io

import soundfile as sf

from tests.conftest import SR, generate_fricative


def _wav_bytes(seconds: float = 0.5) -> bytes:
    buf = io.BytesIO()
    sf.write(buf, generate_fricative(seconds), SR, format="WAV")
    return buf.getvalue()


def test_health_endpoint(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_descriptors_endpoint(client):
    response = client.post(
        "/api/descriptors",
        files={"file": ("test.wav", _wav_bytes(), "audio/wav")},
        data={"start": "0.1", "end": "0.14"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "multitaper"
    assert data["sample_rate"] == 16000
    assert data["n_bins"] == data["n_samples"] // 2 + 1
    desc = data["descriptor"]
    assert desc["moments"]["cog"] > 0
    assert len(desc["dct"]) == 4
    assert desc["peak_frequency"] > 0


def test_descriptors_endpoint_fft_method(client):
    response = client.post(
        "/api/descriptors",
        files={"file": ("test.wav", _wav_bytes(), "audio/wav")},
        data={"start": "0.1", "end": "0.14", "method": "fft", "dct_order": "6"},
    )
    assert response.status_code == 200
    assert len(response.json()["descriptor"]["dct"]) == 7


def test_descriptors_endpoint_rejects_bad_parameters(client):
    response = client.post(
        "/api/descriptors",
        files={"file": ("test.wav", _wav_bytes(), "audio/wav")},
        data={"method": "burg"},
    )
    assert response.status_code == 422


def test_descriptors_endpoint_rejects_unsupported_format(client):
    response = client.post(
        "/api/descriptors",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
    assert "Unsupported format" in response.json()["detail"]


def test_descriptors_endpoint_rejects_oversized_file(client, monkeypatch):
    from fricspec.config import settings

    monkeypatch.setattr(settings, "max_upload_mb", 1)
    payload = b"x" * (1024 * 1024 + 1)
    response = client.post(
        "/api/descriptors",
        files={"file": ("big.wav", payload, "audio/wav")},
    )
    assert response.status_code == 400
    assert "File too large" in response.json()["detail"]


def test_descriptors_endpoint_hides_internal_errors(client):
    response = client.post(
        "/api/descriptors",
        files={"file": ("broken.wav", b"not really audio", "audio/wav")},
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Analysis failed"


def test_intervals_endpoint(client, annotated_wav):
    grid = annotated_wav.with_suffix(".TextGrid")
    with open(annotated_wav, "rb") as audio, open(grid, "rb") as tg:
        response = client.post(
            "/api/intervals",
            files={
                "file": ("speaker1.wav", audio, "audio/wav"),
                "textgrid": ("speaker1.TextGrid", tg, "text/plain"),
            },
            data={"label": "s", "tier": "phones"},
        )
    assert response.status_code == 200
    data = response.json()
    assert data["label"] == "s"
    assert [r["start_time"] for r in data["rows"]] == [0.2, 0.6]
    assert all(r["error"] is None for r in data["rows"])
    assert data["rows"][0]["following_label"] == "i"


def test_intervals_endpoint_missing_tier(client, annotated_wav):
    grid = annotated_wav.with_suffix(".TextGrid")
    with open(annotated_wav, "rb") as audio, open(grid, "rb") as tg:
        response = client.post(
            "/api/intervals",
            files={
                "file": ("speaker1.wav", audio, "audio/wav"),
                "textgrid": ("speaker1.TextGrid", tg, "text/plain"),
            },
            data={"label": "s", "tier": "words"},
        )
    assert response.status_code == 422
