"""Praat TextGrid interval reading."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from textgrid import IntervalTier, TextGrid

from fricspec.analysis.models import Interval
from fricspec.errors import MissingTier

logger = logging.getLogger(__name__)


def read_intervals(path: Union[str, Path], tier: str) -> list[Interval]:
    """Read the intervals of one tier in file order.

    Each interval carries the label of the interval that follows it in the
    tier (``None`` for the last one). Empty labels are kept as ``""`` so
    that positions in the tier are preserved.
    """
    tg = TextGrid.fromFile(str(path))
    found = tg.getFirst(tier)
    if found is None:
        raise MissingTier(f"{path}: no tier named {tier!r} (have {tg.getNames()})")
    if not isinstance(found, IntervalTier):
        raise MissingTier(f"{path}: tier {tier!r} is a point tier, not an interval tier")

    raw = [(float(iv.minTime), float(iv.maxTime), (iv.mark or "").strip()) for iv in found]
    intervals = []
    for i, (start, end, label) in enumerate(raw):
        following = raw[i + 1][2] if i + 1 < len(raw) else None
        intervals.append(Interval(start, end, label, following))
    logger.debug(f"{path}: {len(intervals)} intervals on tier {tier!r}")
    return intervals


def with_following_labels(intervals: list[Interval]) -> list[Interval]:
    """Fill in following_label from list order for intervals that lack it."""
    out = []
    for i, iv in enumerate(intervals):
        if iv.following_label is None and i + 1 < len(intervals):
            iv = Interval(iv.start_time, iv.end_time, iv.label, intervals[i + 1].label)
        out.append(iv)
    return out
