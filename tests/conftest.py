"""Shared test fixtures for spectral analysis tests."""

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient
from scipy.signal import butter, sosfilt
from textgrid import IntervalTier, TextGrid

from fricspec.main import app

SR = 22050

# (start, end, label) on the "phones" tier of the sample TextGrid
PHONES = [
    (0.0, 0.2, "a"),
    (0.2, 0.4, "s"),
    (0.4, 0.6, "i"),
    (0.6, 0.8, "s"),
    (0.8, 1.0, ""),
]


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def white_noise(n: int, seed: int = 0, scale: float = 0.1) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, scale, n)


def generate_fricative(
    duration_seconds: float = 1.0,
    sr: int = SR,
    cutoff: float = 3000.0,
    seed: int = 0,
) -> np.ndarray:
    """High-passed Gaussian noise, a crude stand-in for [s].

    Returns mono audio at the given sample rate.
    """
    noise = white_noise(int(duration_seconds * sr), seed=seed)
    sos = butter(N=6, Wn=cutoff, btype="high", fs=sr, output="sos")
    return sosfilt(sos, noise)


def write_textgrid(path, intervals=PHONES, tier_name: str = "phones") -> None:
    end = intervals[-1][1]
    tg = TextGrid(minTime=0.0, maxTime=end)
    tier = IntervalTier(name=tier_name, minTime=0.0, maxTime=end)
    for start, stop, label in intervals:
        tier.add(start, stop, label)
    tg.append(tier)
    tg.write(str(path))


@pytest.fixture
def fricative():
    return generate_fricative()


@pytest.fixture
def annotated_wav(tmp_path):
    """1 s of fricative noise at 22050 Hz with a sibling phones TextGrid."""
    wav_path = tmp_path / "speaker1.wav"
    sf.write(str(wav_path), generate_fricative(1.0), SR)
    write_textgrid(tmp_path / "speaker1.TextGrid")
    return wav_path
