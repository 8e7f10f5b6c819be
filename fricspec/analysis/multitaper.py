"""Multitaper power spectral density estimation.

Each of the K DPSS tapers is applied to the window, the K eigenspectra are
computed with a real FFT, and combined into one estimate either by a plain
average or by Thomson's adaptive weighting, which down-weights eigenspectra
whose broadband leakage dominates at a given frequency.
"""

from __future__ import annotations

import numpy as np

from fricspec.analysis.models import RAW_POWER, SampleBuffer, Spectrum
from fricspec.analysis.tapers import taper_bank, validate
from fricspec.errors import InvalidParameter

COMBINE_METHODS = ("adaptive", "average")

ADAPTIVE_MAX_ITER = 100
ADAPTIVE_TOL = 1e-10


def eigenspectra(x: np.ndarray, tapers: np.ndarray) -> np.ndarray:
    """|FFT|^2 of every tapered copy of x. Shape (K, L // 2 + 1)."""
    return np.abs(np.fft.rfft(tapers * x[np.newaxis, :], axis=-1)) ** 2


def combine_average(sk: np.ndarray) -> np.ndarray:
    return sk.mean(axis=0)


def combine_adaptive(
    sk: np.ndarray,
    eigenvalues: np.ndarray,
    variance: float,
    max_iter: int = ADAPTIVE_MAX_ITER,
    tol: float = ADAPTIVE_TOL,
) -> np.ndarray:
    """Thomson adaptive weighting of eigenspectra.

    Weights are d_k(f) = sqrt(l_k) S(f) / (l_k S(f) + (1 - l_k) s2) where l_k
    is the concentration ratio of taper k and s2 the window variance. The
    iteration starts from the mean of the two best-concentrated eigenspectra
    and runs a fixed maximum number of steps, so the result is deterministic.
    """
    k = sk.shape[0]
    if k == 1 or variance <= 0:
        return combine_average(sk)

    lam = eigenvalues[:, np.newaxis]
    spec = sk[:2].mean(axis=0)
    for _ in range(max_iter):
        denom = lam * spec + (1.0 - lam) * variance
        d = np.divide(np.sqrt(lam) * spec, denom, out=np.zeros_like(sk), where=denom > 0)
        d2 = d ** 2
        total = d2.sum(axis=0)
        new = np.divide(
            (d2 * sk).sum(axis=0), total,
            out=combine_average(sk), where=total > 0,
        )
        scale = np.maximum(np.abs(spec), np.finfo(float).tiny)
        converged = np.max(np.abs(new - spec) / scale) < tol
        spec = new
        if converged:
            break
    return spec


def one_sided_psd(power: np.ndarray, n: int, sample_rate: float) -> np.ndarray:
    """Scale rfft power to a one-sided density in units^2/Hz."""
    psd = power / sample_rate
    if n % 2 == 0:
        psd[1:-1] *= 2.0
    else:
        psd[1:] *= 2.0
    return psd


def estimate(
    buffer: SampleBuffer,
    nw: float = 4.0,
    k: int = 8,
    combine: str = "adaptive",
    demean: bool = True,
) -> Spectrum:
    """Multitaper PSD of a sample buffer.

    Returns L // 2 + 1 bins from 0 Hz to Nyquist spaced sample_rate / L
    apart, on the raw power scale.
    """
    if combine not in COMBINE_METHODS:
        raise InvalidParameter(f"combine must be one of {COMBINE_METHODS}, got {combine!r}")

    n = len(buffer)
    validate(n, nw, k)
    taper_set = taper_bank.get(n, nw, k)

    x = np.asarray(buffer.samples, dtype=np.float64)
    if demean:
        x = x - x.mean()

    sk = eigenspectra(x, taper_set.tapers)
    if combine == "adaptive":
        power = combine_adaptive(sk, taper_set.eigenvalues, float(np.var(x)))
    else:
        power = combine_average(sk)

    freqs = np.fft.rfftfreq(n, d=1.0 / buffer.sample_rate)
    return Spectrum(freqs, one_sided_psd(power, n, buffer.sample_rate), RAW_POWER)
