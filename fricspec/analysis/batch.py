"""Windowed batch driver - sliding windows and annotation-centred windows.

Windows, intervals and files are independent units of work. They may run on
a thread pool, but rows are always emitted in input order. A failure in one
unit is attached to its row and the run continues, unless strict mode is on.
Settings that would fail every row are checked once, before any window runs.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from fricspec.analysis.engine import SpectralParams, analyze_buffer
from fricspec.analysis.models import (
    Descriptor,
    Interval,
    IntervalRecord,
    ResultTable,
    SampleBuffer,
    WindowRecord,
)
from fricspec.audio.annotations import read_intervals, with_following_labels
from fricspec.audio.loader import read_samples, resample
from fricspec.errors import InvalidParameter

logger = logging.getLogger(__name__)


def window_starts(length: int, width: int, steps: int) -> np.ndarray:
    """Evenly spaced start offsets: first at 0, last ending at ``length``."""
    if width < 1 or int(width) != width:
        raise InvalidParameter(f"window width must be a positive integer, got {width}")
    if steps < 1 or int(steps) != steps:
        raise InvalidParameter(f"steps must be a positive integer, got {steps}")
    if width > length:
        raise InvalidParameter(f"window width {width} exceeds buffer length {length}")
    return np.rint(np.linspace(0, length - width, int(steps))).astype(int)


def centred_window(interval: Interval, width: float) -> tuple[float, float]:
    """(start, end) in seconds of a ``width`` window on the interval midpoint."""
    mid = interval.midpoint
    return mid - width / 2.0, mid + width / 2.0


def check_interval_args(width: float, resample_rate: int | None) -> None:
    if width <= 0:
        raise InvalidParameter(f"window width must be > 0 seconds, got {width}")
    if resample_rate is not None and resample_rate <= 0:
        raise InvalidParameter(f"resample rate must be > 0, got {resample_rate}")


def default_annotation_path(audio_path) -> Path:
    return Path(audio_path).with_suffix(".TextGrid")


class BatchDriver:
    """Applies estimate -> normalise -> describe across many windows."""

    def __init__(
        self,
        params: SpectralParams | None = None,
        strict: bool = False,
        max_workers: int | None = None,
        reader=read_samples,
        resampler=resample,
        annotation_reader=read_intervals,
    ):
        self.params = params or SpectralParams()
        self.params.validate()
        self.strict = strict
        self.max_workers = max_workers or 1
        self.reader = reader
        self.resampler = resampler
        self.annotation_reader = annotation_reader

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _map(self, fn, items: list) -> list:
        """Ordered map, threaded when max_workers > 1."""
        if self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                return list(pool.map(fn, items))
        return [fn(item) for item in items]

    def _isolate(self, what: str, fn, *args):
        """Run fn; return (result, None) or, outside strict mode, (None, error)."""
        try:
            return fn(*args), None
        except Exception as e:
            if self.strict:
                raise
            logger.warning(f"  {what}: {type(e).__name__}: {e}")
            return None, e

    def _analyze(self, buffer: SampleBuffer) -> Descriptor:
        return analyze_buffer(buffer, self.params)

    # ------------------------------------------------------------------
    # Sliding windows
    # ------------------------------------------------------------------

    def windows(self, buffer: SampleBuffer, width: int, steps: int) -> ResultTable:
        """One row per evenly spaced window of ``width`` samples."""
        starts = window_starts(len(buffer), width, steps)
        sr = buffer.sample_rate
        logger.info(f"Sliding windows: {len(starts)} x {width} samples over {buffer.duration:.3f}s")

        def work(item: tuple[int, int]) -> WindowRecord:
            i, start = item
            end = start + int(width)
            desc, err = self._isolate(f"window {i}", self._analyze, buffer.window(start, end))
            return WindowRecord(
                index=i,
                start_sample=start,
                end_sample=end,
                start_time=start / sr,
                end_time=end / sr,
                descriptor=desc,
                error=err,
            )

        table = ResultTable()
        table.extend(self._map(work, list(enumerate(int(s) for s in starts))))
        self._log_summary(table)
        return table

    # ------------------------------------------------------------------
    # Annotation-centred windows
    # ------------------------------------------------------------------

    def _read_window(self, path, start: float, end: float, resample_rate: int | None) -> SampleBuffer:
        samples, sr = self.reader(path, start, end)
        if resample_rate is not None and int(sr) != int(resample_rate):
            samples = self.resampler(samples, sr, resample_rate)
            sr = resample_rate
        return SampleBuffer(samples, sr)

    def _interval_record(
        self,
        path,
        file_id: str,
        index: int,
        interval: Interval,
        width: float,
        resample_rate: int | None,
    ) -> IntervalRecord:
        start, end = centred_window(interval, width)
        if start < 0:
            logger.warning(f"  {file_id} #{index}: window starts before 0s, clamped")
            start = 0.0

        def work() -> Descriptor:
            return self._analyze(self._read_window(path, start, end, resample_rate))

        desc, err = self._isolate(f"{file_id} #{index}", work)
        return IntervalRecord(
            file=file_id,
            index=index,
            start_time=interval.start_time,
            end_time=interval.end_time,
            following_label=interval.following_label,
            window_start=start,
            window_end=end,
            descriptor=desc,
            error=err,
        )

    def intervals(
        self,
        path,
        tier: str,
        match_label: str,
        width: float,
        resample_rate: int | None = None,
        annotation_path=None,
    ) -> ResultTable:
        """One row per interval labelled ``match_label``, in annotation order.

        ``width`` is the analysis window in seconds, centred on each matching
        interval's midpoint. No matches gives an empty table.
        """
        check_interval_args(width, resample_rate)

        file_id = str(path)
        ann_path = annotation_path or default_annotation_path(path)
        intervals = with_following_labels(list(self.annotation_reader(ann_path, tier)))
        matches = [iv for iv in intervals if iv.label == match_label]
        logger.info(f"{file_id}: {len(matches)}/{len(intervals)} intervals labelled {match_label!r}")

        table = ResultTable()
        if not matches:
            return table

        def work(item: tuple[int, Interval]) -> IntervalRecord:
            i, iv = item
            return self._interval_record(path, file_id, i, iv, width, resample_rate)

        table.extend(self._map(work, list(enumerate(matches))))
        self._log_summary(table)
        return table

    def files(
        self,
        paths,
        tier: str,
        match_label: str,
        width: float,
        resample_rate: int | None = None,
        progress=None,
    ) -> ResultTable:
        """Concatenate per-file interval tables in list order.

        A file whose annotation cannot be read contributes a single error row
        (``index`` None). ``progress`` wraps the path iterable, e.g. tqdm.
        """
        check_interval_args(width, resample_rate)
        paths = list(paths)
        iterable = progress(paths) if progress is not None else paths
        table = ResultTable()
        for path in iterable:
            rows, err = self._isolate(
                str(path), self.intervals, path, tier, match_label, width, resample_rate,
            )
            if err is not None:
                table.append(IntervalRecord(file=str(path), index=None, error=err))
            else:
                table.extend(rows)
        logger.info(f"Processed {len(paths)} files, {len(table)} rows, {len(table.errors)} errors")
        return table

    @staticmethod
    def _log_summary(table: ResultTable) -> None:
        n_err = len(table.errors)
        if n_err:
            logger.info(f"  {len(table)} rows, {n_err} with errors")
        else:
            logger.info(f"  {len(table)} rows")
