"""Exceptions raised by the spectral analysis core.

InvalidParameter is always the caller's fault. The data-shape errors come
from the window currently being analysed: fatal for single-window calls,
recorded per row by the batch driver.
"""


class SpectralError(Exception):
    """Base class for analysis errors."""


class InvalidParameter(SpectralError, ValueError):
    """Malformed bandwidth, taper count, DCT order, band or window argument."""


class InvalidInput(SpectralError, ValueError):
    """Spectrum values that cannot be log-transformed."""


class DataShapeError(SpectralError):
    """The current window cannot be summarised."""


class InsufficientSamples(DataShapeError):
    pass


class EmptyBandResult(DataShapeError):
    pass


class EmptyRegion(DataShapeError):
    pass


class DegenerateSpectrum(DataShapeError):
    pass


class MissingTier(LookupError):
    """Annotation file has no tier with the requested name."""
