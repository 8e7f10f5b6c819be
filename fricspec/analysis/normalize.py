"""Log-energy conversion and frequency band restriction."""

from __future__ import annotations

import numpy as np

from fricspec.analysis.models import LOG_POWER, RAW_POWER, SCALES, Spectrum
from fricspec.errors import EmptyBandResult, InvalidInput, InvalidParameter

Band = tuple[float | None, float | None]  # (min_hz, max_hz)


def band_mask(freqs: np.ndarray, band: Band | None) -> np.ndarray:
    """Boolean mask keeping min < f < max. Either bound may be None."""
    if band is None:
        return np.ones(len(freqs), dtype=bool)
    try:
        lo, hi = band
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"band must be a (min_hz, max_hz) pair, got {band!r}") from e
    if lo is not None and hi is not None and lo >= hi:
        raise InvalidParameter(f"band minimum {lo} must be below maximum {hi}")

    mask = np.ones(len(freqs), dtype=bool)
    if lo is not None:
        mask &= freqs > lo
    if hi is not None:
        mask &= freqs < hi
    return mask


def restrict(spectrum: Spectrum, band: Band | None) -> Spectrum:
    """Copy of the spectrum with bins at or outside the band edges removed."""
    mask = band_mask(spectrum.freqs, band)
    if not mask.any():
        raise EmptyBandResult(f"No frequency bins strictly inside {band}")
    return Spectrum(spectrum.freqs[mask], spectrum.values[mask], spectrum.scale)


def to_log(spectrum: Spectrum) -> Spectrum:
    """Natural log of a raw power spectrum."""
    values = spectrum.values
    bad = ~np.isfinite(values) | (values <= 0)
    if bad.any():
        first = int(np.argmax(bad))
        raise InvalidInput(
            f"{int(bad.sum())} non-positive or non-finite power values "
            f"(first at {spectrum.freqs[first]:.1f} Hz); cannot take log"
        )
    return Spectrum(spectrum.freqs, np.log(values), LOG_POWER)


def normalize(
    spectrum: Spectrum,
    scale: str | None = None,
    band: Band | None = None,
) -> Spectrum:
    """Convert to log energy (if raw) and optionally restrict to a band.

    ``scale`` states how to treat the input values and defaults to the
    spectrum's own scale. Band restriction happens after the log transform.
    """
    scale = scale or spectrum.scale
    if scale not in SCALES:
        raise InvalidParameter(f"scale must be one of {SCALES}, got {scale!r}")

    if scale == RAW_POWER:
        out = to_log(spectrum)
    else:
        out = Spectrum(spectrum.freqs, spectrum.values, LOG_POWER)

    if band is not None:
        out = restrict(out, band)
    return out
