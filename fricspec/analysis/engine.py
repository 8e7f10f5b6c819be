"""Analysis entry points - spectrum estimation, normalisation, descriptors.

Every numeric setting travels in an explicit SpectralParams; nothing is read
from process-wide state unless the caller asks for SpectralParams.from_settings().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np

from fricspec.analysis import multitaper, periodogram
from fricspec.analysis.descriptors import DESCRIPTORS, describe
from fricspec.analysis.models import Descriptor, ResultTable, SampleBuffer, Spectrum
from fricspec.analysis.normalize import Band, band_mask, normalize
from fricspec.errors import InvalidParameter

logger = logging.getLogger(__name__)

METHODS = ("multitaper", "fft")


@dataclass(frozen=True)
class SpectralParams:
    """Settings for one estimate -> normalise -> describe pass."""
    method: str = "multitaper"
    nw: float = 4.0
    k: int = 8
    combine: str = "adaptive"
    window: str = "hamming"  # FFT baseline analysis window
    band: Band | None = (500.0, None)
    which: frozenset = DESCRIPTORS
    dct_order: int = 3
    peak_region: Band | None = None
    excess_kurtosis: bool = False

    def __post_init__(self):
        if self.method not in METHODS:
            raise InvalidParameter(f"method must be one of {METHODS}, got {self.method!r}")
        which = self.which
        object.__setattr__(self, "which", frozenset([which] if isinstance(which, str) else which))
        if self.band is not None:
            object.__setattr__(self, "band", tuple(self.band))

    def validate(self) -> None:
        """Check the settings that do not depend on any particular window.

        Raises InvalidParameter. Window-dependent limits (enough samples for
        K tapers, NW below half the window, enough bins for the DCT order)
        are left to the per-window computation.
        """
        if self.nw <= 0:
            raise InvalidParameter(f"nw must be > 0, got {self.nw}")
        if self.k < 1 or int(self.k) != self.k:
            raise InvalidParameter(f"k must be a positive integer, got {self.k}")
        if self.combine not in multitaper.COMBINE_METHODS:
            raise InvalidParameter(
                f"combine must be one of {multitaper.COMBINE_METHODS}, got {self.combine!r}"
            )
        if self.dct_order < 0 or int(self.dct_order) != self.dct_order:
            raise InvalidParameter(f"DCT order must be a non-negative integer, got {self.dct_order}")
        unknown = self.which - DESCRIPTORS
        if unknown or not self.which:
            raise InvalidParameter(f"Descriptors must be a non-empty subset of {sorted(DESCRIPTORS)}")
        band_mask(np.empty(0), self.band)
        band_mask(np.empty(0), self.peak_region)
        if self.method == "fft":
            periodogram.analysis_window(self.window, 8)

    @classmethod
    def from_settings(cls, settings=None, **overrides) -> SpectralParams:
        if settings is None:
            from fricspec.config import settings
        params = cls(
            nw=settings.nw,
            k=settings.k,
            combine=settings.combine,
            window=settings.fft_window,
            band=(settings.band_min_hz, settings.band_max_hz),
            dct_order=settings.dct_order,
        )
        return replace(params, **overrides) if overrides else params


def _as_buffer(samples, sample_rate: float | None) -> SampleBuffer:
    if isinstance(samples, SampleBuffer):
        return samples
    if sample_rate is None or sample_rate <= 0:
        raise InvalidParameter(f"A positive sample rate is required, got {sample_rate}")
    return SampleBuffer(np.asarray(samples, dtype=np.float64), sample_rate)


def estimate_spectrum(
    samples,
    sample_rate: float | None = None,
    method: str | None = None,
    params: SpectralParams | None = None,
) -> Spectrum:
    """Raw spectrum of a sample buffer with the multitaper or FFT estimator."""
    params = params or SpectralParams()
    method = method or params.method
    buffer = _as_buffer(samples, sample_rate)

    if method == "multitaper":
        return multitaper.estimate(buffer, nw=params.nw, k=params.k, combine=params.combine)
    if method == "fft":
        return periodogram.estimate(buffer, window=params.window)
    raise InvalidParameter(f"method must be one of {METHODS}, got {method!r}")


def descriptors(
    spectrum: Spectrum,
    which=DESCRIPTORS,
    dct_order: int | None = None,
    peak_region: Band | None = None,
    excess_kurtosis: bool = False,
) -> Descriptor:
    """Peak / moments / DCT summary of a normalised spectrum."""
    return describe(
        spectrum,
        which=which,
        dct_order=3 if dct_order is None else dct_order,
        peak_region=peak_region,
        excess_kurtosis=excess_kurtosis,
    )


def analyze_buffer(buffer: SampleBuffer, params: SpectralParams) -> Descriptor:
    """Run one window through estimate -> normalise -> describe. Fails fast."""
    raw = estimate_spectrum(buffer, params=params)
    spectrum = normalize(raw, band=params.band)
    return descriptors(
        spectrum,
        which=params.which,
        dct_order=params.dct_order,
        peak_region=params.peak_region,
        excess_kurtosis=params.excess_kurtosis,
    )


def batch_windows(
    samples,
    sample_rate: float | None,
    window_width: int,
    steps: int,
    params: SpectralParams | None = None,
    strict: bool = False,
    max_workers: int | None = None,
) -> ResultTable:
    """Descriptors for ``steps`` evenly spaced windows of ``window_width`` samples."""
    from fricspec.analysis.batch import BatchDriver

    driver = BatchDriver(params or SpectralParams(), strict=strict, max_workers=max_workers)
    return driver.windows(_as_buffer(samples, sample_rate), window_width, steps)


def batch_intervals(
    path,
    tier: str,
    match_label: str,
    window_width: float,
    resample_rate: int | None = None,
    params: SpectralParams | None = None,
    strict: bool = False,
    max_workers: int | None = None,
    annotation_path=None,
) -> ResultTable:
    """Descriptors for windows centred on every ``match_label`` interval of a file."""
    from fricspec.analysis.batch import BatchDriver

    driver = BatchDriver(params or SpectralParams(), strict=strict, max_workers=max_workers)
    return driver.intervals(path, tier, match_label, window_width, resample_rate, annotation_path)


def batch_files(
    paths,
    tier: str,
    match_label: str,
    window_width: float,
    resample_rate: int | None = None,
    params: SpectralParams | None = None,
    strict: bool = False,
    max_workers: int | None = None,
) -> ResultTable:
    """batch_intervals over several files, concatenated in list order."""
    from fricspec.analysis.batch import BatchDriver

    driver = BatchDriver(params or SpectralParams(), strict=strict, max_workers=max_workers)
    return driver.files(paths, tier, match_label, window_width, resample_rate)
