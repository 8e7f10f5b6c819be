"""Single-window FFT periodogram, the comparison baseline for multitaper."""

from __future__ import annotations

import numpy as np
from scipy.signal import get_window

from fricspec.analysis.models import LOG_POWER, SampleBuffer, Spectrum
from fricspec.errors import InsufficientSamples, InvalidParameter


def analysis_window(window: str, n: int) -> np.ndarray:
    """Symmetric analysis window of length n, by scipy window name."""
    try:
        return get_window(window, n, fftbins=False)
    except ValueError as e:
        raise InvalidParameter(f"Unknown analysis window {window!r}") from e


def estimate(
    buffer: SampleBuffer,
    window: str = "hamming",
    floor_db: float = -200.0,
) -> Spectrum:
    """Windowed periodogram magnitude in decibels.

    Unlike the multitaper path the output is already log-scaled
    (20 * log10 |X|), so the normaliser passes it through. Bins with exactly
    zero magnitude are reported at ``floor_db``.
    """
    n = len(buffer)
    if n < 2:
        raise InsufficientSamples(f"FFT baseline needs at least 2 samples, got {n}")
    win = analysis_window(window, n)

    magnitude = np.abs(np.fft.rfft(buffer.samples * win))
    floor = 10.0 ** (floor_db / 20.0)
    db = 20.0 * np.log10(np.maximum(magnitude, floor))

    freqs = np.fft.rfftfreq(n, d=1.0 / buffer.sample_rate)
    return Spectrum(freqs, db, LOG_POWER)
