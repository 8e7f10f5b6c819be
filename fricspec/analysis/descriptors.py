"""Shape descriptors of a log-energy spectrum: peak, moments, DCT."""

from __future__ import annotations

import numpy as np
from scipy.fft import dct as _dct, idct as _idct

from fricspec.analysis.models import Descriptor, Moments, Spectrum
from fricspec.analysis.normalize import Band, band_mask
from fricspec.errors import DegenerateSpectrum, EmptyRegion, InvalidParameter

DESCRIPTORS = frozenset({"peak", "moments", "dct"})


def peak(spectrum: Spectrum, region: Band | None = None) -> float:
    """Frequency of the highest-energy bin, lowest frequency on ties."""
    mask = band_mask(spectrum.freqs, region)
    if not mask.any():
        raise EmptyRegion(f"No frequency bins strictly inside {region}")
    freqs = spectrum.freqs[mask]
    values = spectrum.values[mask]
    return float(freqs[int(np.argmax(values))])


def moments(spectrum: Spectrum, excess_kurtosis: bool = False) -> Moments:
    """Centre of gravity, standard deviation, skewness and kurtosis.

    Energies are treated as unnormalised weights. They are first shifted so
    the minimum is zero (log energies are usually negative), then scaled to
    sum to one. Adding a constant to every energy therefore leaves the
    result unchanged.
    """
    freqs = spectrum.freqs
    energy = np.asarray(spectrum.values, dtype=np.float64)
    if len(energy) == 0:
        raise DegenerateSpectrum("Empty spectrum")
    if not np.all(np.isfinite(energy)):
        raise DegenerateSpectrum("Spectrum contains non-finite energy values")

    weights = energy - energy.min()
    total = weights.sum()
    if total <= 0:
        raise DegenerateSpectrum("Flat spectrum: shifted weights sum to zero")
    p = weights / total

    cog = float(np.sum(p * freqs))
    dev = freqs - cog
    variance = float(np.sum(p * dev ** 2))
    if variance <= 0:
        raise DegenerateSpectrum("All spectral weight falls in a single bin")
    sd = np.sqrt(variance)

    skew = float(np.sum(p * dev ** 3) / sd ** 3)
    kurtosis = float(np.sum(p * dev ** 4) / variance ** 2)
    if excess_kurtosis:
        kurtosis -= 3.0
    return Moments(cog=cog, sd=float(sd), skew=skew, kurtosis=kurtosis)


def _check_order(n: int, m: int) -> None:
    if m < 0 or int(m) != m:
        raise InvalidParameter(f"DCT order must be a non-negative integer, got {m}")
    if m + 1 > n:
        raise InvalidParameter(f"DCT order {m} needs at least {m + 1} values, got {n}")


def dct(energies, m: int = 3) -> np.ndarray:
    """First m + 1 orthonormal type-II DCT coefficients of an energy sequence.

    Only the ordering of the values matters, not the frequency axis.
    Coefficient 0 is proportional to the mean, 1 to the linear slope and 2
    to the curvature.
    """
    x = np.asarray(energies, dtype=np.float64)
    _check_order(len(x), m)
    return _dct(x, type=2, norm="ortho")[: m + 1]


def dct_smooth(energies, m: int = 3) -> np.ndarray:
    """Reconstruct the sequence from its first m + 1 DCT coefficients."""
    x = np.asarray(energies, dtype=np.float64)
    coefs = np.zeros_like(x)
    coefs[: m + 1] = dct(x, m)
    return _idct(coefs, type=2, norm="ortho")


def describe(
    spectrum: Spectrum,
    which=DESCRIPTORS,
    dct_order: int = 3,
    peak_region: Band | None = None,
    excess_kurtosis: bool = False,
) -> Descriptor:
    """Compute the requested subset of {peak, moments, dct}."""
    which = frozenset([which] if isinstance(which, str) else which)
    unknown = which - DESCRIPTORS
    if unknown:
        raise InvalidParameter(f"Unknown descriptors: {sorted(unknown)}")
    if not which:
        raise InvalidParameter("At least one descriptor must be requested")

    return Descriptor(
        peak_frequency=peak(spectrum, peak_region) if "peak" in which else None,
        moments=moments(spectrum, excess_kurtosis) if "moments" in which else None,
        dct=tuple(float(c) for c in dct(spectrum.values, dct_order)) if "dct" in which else None,
    )
