"""Tests for log conversion and band restriction."""

import numpy as np
import pytest

from fricspec.analysis.descriptors import moments
from fricspec.analysis.models import LOG_POWER, RAW_POWER, Spectrum
from fricspec.analysis.normalize import normalize, restrict
from fricspec.errors import EmptyBandResult, InvalidInput, InvalidParameter

FREQS = np.arange(0.0, 8001.0, 250.0)


def _raw(values=None):
    if values is None:
        values = np.linspace(1.0, 2.0, len(FREQS))
    return Spectrum(FREQS, values, RAW_POWER)


def test_raw_power_becomes_natural_log():
    spec = _raw()
    out = normalize(spec)
    assert out.scale == LOG_POWER
    np.testing.assert_allclose(out.values, np.log(spec.values))
    np.testing.assert_array_equal(out.freqs, spec.freqs)


def test_log_power_passes_through():
    spec = Spectrum(FREQS, -np.ones(len(FREQS)), LOG_POWER)
    out = normalize(spec)
    np.testing.assert_array_equal(out.values, spec.values)


def test_explicit_scale_overrides_spectrum_scale():
    spec = _raw()
    out = normalize(spec, scale=LOG_POWER)
    np.testing.assert_array_equal(out.values, spec.values)


@pytest.mark.parametrize("bad", [0.0, -1.0, np.nan, np.inf])
def test_non_positive_power_is_rejected(bad):
    values = np.ones(len(FREQS))
    values[5] = bad
    with pytest.raises(InvalidInput):
        normalize(_raw(values))


def test_band_excludes_both_edges():
    out = normalize(_raw(), band=(500.0, 4000.0))
    assert out.freqs[0] == 750.0
    assert out.freqs[-1] == 3750.0
    assert np.all((out.freqs > 500.0) & (out.freqs < 4000.0))


def test_open_ended_band():
    out = normalize(_raw(), band=(500.0, None))
    assert out.freqs[0] == 750.0
    assert out.freqs[-1] == 8000.0
    out = normalize(_raw(), band=(None, 1000.0))
    assert out.freqs[0] == 0.0
    assert out.freqs[-1] == 750.0


def test_band_does_not_touch_input():
    spec = _raw()
    restrict(spec, (1000.0, 2000.0))
    assert len(spec) == len(FREQS)


def test_empty_band_raises():
    with pytest.raises(EmptyBandResult):
        normalize(_raw(), band=(1000.0, 1250.0))
    with pytest.raises(EmptyBandResult):
        normalize(_raw(), band=(9000.0, None))


def test_malformed_band_raises():
    with pytest.raises(InvalidParameter):
        normalize(_raw(), band=(4000.0, 500.0))
    with pytest.raises(InvalidParameter):
        normalize(_raw(), band=(500.0,))
    with pytest.raises(InvalidParameter):
        normalize(_raw(), scale="decibel")


def test_band_restriction_shrinks_moment_support():
    rng = np.random.default_rng(1)
    spec = normalize(_raw(rng.uniform(0.5, 2.0, len(FREQS))))
    full = moments(spec)
    narrow_spec = restrict(spec, (2000.0, 6000.0))
    narrow = moments(narrow_spec)
    assert narrow_spec.freqs.min() >= spec.freqs.min()
    assert narrow_spec.freqs.max() <= spec.freqs.max()
    assert 2000.0 < narrow.cog < 6000.0
    assert narrow.sd <= (6000.0 - 2000.0) / 2
    assert full.sd > 0
