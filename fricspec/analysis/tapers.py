"""DPSS taper generation with a process-wide cache.

Tapers depend only on (window length, NW, K), so batch runs over windows of
a fixed width compute them once. Lookups are safe from worker threads: each
key is computed exactly once, concurrent callers for the same key wait for
that computation.
"""

import logging
import threading

import numpy as np
from scipy.signal.windows import dpss

from fricspec.analysis.models import TaperSet
from fricspec.errors import InsufficientSamples, InvalidParameter

logger = logging.getLogger(__name__)


def validate(length: int, nw: float, k: int) -> None:
    """Check (L, NW, K) before any taper is generated."""
    if nw <= 0:
        raise InvalidParameter(f"nw must be > 0, got {nw}")
    if k < 1 or int(k) != k:
        raise InvalidParameter(f"k must be a positive integer, got {k}")
    if length < 2 * k:
        raise InsufficientSamples(
            f"{length} samples is too short for {k} tapers (need at least {2 * k})"
        )
    if nw >= length / 2:
        raise InvalidParameter(f"nw must be less than half the window length ({length / 2}), got {nw}")


def make_tapers(length: int, nw: float, k: int) -> TaperSet:
    """Generate K unit-energy Slepian tapers of the given length."""
    validate(length, nw, k)
    tapers, ratios = dpss(length, nw, Kmax=k, norm=2, return_ratios=True)
    tapers = np.atleast_2d(tapers).astype(np.float64)
    ratios = np.atleast_1d(ratios).astype(np.float64)
    tapers.setflags(write=False)
    ratios.setflags(write=False)
    return TaperSet(length=length, nw=float(nw), k=int(k), tapers=tapers, eigenvalues=ratios)


class TaperBank:
    """Compute-once cache of TaperSets keyed by (length, nw, k)."""

    def __init__(self):
        self._tapers: dict[tuple[int, float, int], TaperSet] = {}
        self._locks: dict[tuple[int, float, int], threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, length: int, nw: float, k: int) -> TaperSet:
        key = (int(length), float(nw), int(k))
        cached = self._tapers.get(key)
        if cached is not None:
            return cached

        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            cached = self._tapers.get(key)
            if cached is None:
                logger.debug("Generating tapers L=%d NW=%.2f K=%d", *key)
                cached = make_tapers(*key)
                self._tapers[key] = cached
        return cached

    def clear(self) -> None:
        with self._guard:
            self._tapers.clear()
            self._locks.clear()

    def __len__(self) -> int:
        return len(self._tapers)

    def __contains__(self, key) -> bool:
        length, nw, k = key
        return (int(length), float(nw), int(k)) in self._tapers


taper_bank = TaperBank()
