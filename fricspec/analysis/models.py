"""Core data models for spectral analysis."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union

import numpy as np

RAW_POWER = "raw_power"
LOG_POWER = "log_power"
SCALES = (RAW_POWER, LOG_POWER)


def _frozen(arr, dtype=np.float64) -> np.ndarray:
    out = np.array(arr, dtype=dtype, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class SampleBuffer:
    """Mono samples plus their sample rate (Hz). Read-only."""
    samples: np.ndarray
    sample_rate: float

    def __post_init__(self):
        object.__setattr__(self, "samples", _frozen(np.ravel(self.samples)))
        object.__setattr__(self, "sample_rate", float(self.sample_rate))

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate

    def window(self, start: int, stop: int) -> SampleBuffer:
        """Sub-buffer covering samples[start:stop]."""
        return SampleBuffer(self.samples[start:stop], self.sample_rate)


@dataclass(frozen=True)
class Spectrum:
    """Frequency axis (Hz, increasing) with raw power or log-energy values."""
    freqs: np.ndarray
    values: np.ndarray
    scale: str = RAW_POWER

    def __post_init__(self):
        freqs = _frozen(self.freqs)
        values = _frozen(self.values)
        if freqs.shape != values.shape or freqs.ndim != 1:
            raise ValueError("freqs and values must be 1-D arrays of equal length")
        if self.scale not in SCALES:
            raise ValueError(f"Unknown spectrum scale {self.scale!r}")
        if len(freqs) and (freqs[0] < 0 or np.any(np.diff(freqs) <= 0)):
            raise ValueError("frequencies must be non-negative and strictly increasing")
        object.__setattr__(self, "freqs", freqs)
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return len(self.freqs)

    @property
    def bin_width(self) -> float:
        if len(self.freqs) < 2:
            return 0.0
        return float(self.freqs[1] - self.freqs[0])


@dataclass(frozen=True)
class TaperSet:
    """K DPSS tapers of one window length, with concentration ratios."""
    length: int
    nw: float
    k: int
    tapers: np.ndarray  # (k, length)
    eigenvalues: np.ndarray  # (k,)


@dataclass(frozen=True)
class Moments:
    """First four spectral moments."""
    cog: float  # Hz
    sd: float  # Hz
    skew: float
    kurtosis: float


@dataclass(frozen=True)
class Descriptor:
    """Shape summary of one spectrum. Unrequested fields stay None."""
    peak_frequency: float | None = None
    moments: Moments | None = None
    dct: tuple[float, ...] | None = None

    def as_dict(self) -> dict:
        row: dict = {}
        if self.peak_frequency is not None:
            row["peak"] = self.peak_frequency
        if self.moments is not None:
            row["cog"] = self.moments.cog
            row["sd"] = self.moments.sd
            row["skew"] = self.moments.skew
            row["kurtosis"] = self.moments.kurtosis
        if self.dct is not None:
            for i, c in enumerate(self.dct):
                row[f"dct{i}"] = c
        return row


@dataclass(frozen=True)
class Interval:
    """A labelled time span (seconds) from an annotation tier."""
    start_time: float
    end_time: float
    label: str
    following_label: str | None = None

    @property
    def midpoint(self) -> float:
        return (self.start_time + self.end_time) / 2.0


@dataclass(frozen=True)
class WindowRecord:
    """Result for one sliding-window placement."""
    index: int
    start_sample: int
    end_sample: int  # exclusive
    start_time: float
    end_time: float
    descriptor: Descriptor | None = None
    error: Exception | None = None

    def as_dict(self) -> dict:
        row = {
            "index": self.index,
            "start_sample": self.start_sample,
            "end_sample": self.end_sample,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
        if self.descriptor is not None:
            row.update(self.descriptor.as_dict())
        row["error"] = _error_text(self.error)
        return row


@dataclass(frozen=True)
class IntervalRecord:
    """Result for one annotation-centred window."""
    file: str
    index: int | None  # 0-based among matches; None for a file-level failure
    start_time: float | None = None
    end_time: float | None = None
    following_label: str | None = None
    window_start: float | None = None
    window_end: float | None = None
    descriptor: Descriptor | None = None
    error: Exception | None = None

    def as_dict(self) -> dict:
        row = {
            "file": self.file,
            "index": self.index,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "following_label": self.following_label,
            "window_start": self.window_start,
            "window_end": self.window_end,
        }
        if self.descriptor is not None:
            row.update(self.descriptor.as_dict())
        row["error"] = _error_text(self.error)
        return row


Record = Union[WindowRecord, IntervalRecord]


def _error_text(error: Exception | None) -> str | None:
    if error is None:
        return None
    return f"{type(error).__name__}: {error}"


@dataclass
class ResultTable:
    """Append-only ordered sequence of window or interval records."""
    _rows: list[Record] = field(default_factory=list, init=False)

    def append(self, record: Record) -> None:
        self._rows.append(record)

    def extend(self, records) -> None:
        for r in records:
            self.append(r)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Record]:
        return iter(tuple(self._rows))

    def __getitem__(self, i: int) -> Record:
        return self._rows[i]

    @property
    def rows(self) -> tuple[Record, ...]:
        return tuple(self._rows)

    @property
    def errors(self) -> list[Record]:
        return [r for r in self._rows if r.error is not None]

    def to_records(self) -> list[dict]:
        """Flat dict per row, descriptor fields expanded into columns."""
        return [r.as_dict() for r in self._rows]

    def write_csv(self, path_or_file) -> None:
        """Write all rows as CSV with the union of columns in first-seen order."""
        records = self.to_records()
        columns: list[str] = []
        for rec in records:
            for key in rec:
                if key not in columns:
                    columns.append(key)

        if isinstance(path_or_file, (str, Path)):
            with open(path_or_file, "w", newline="") as f:
                _write_rows(f, columns, records)
        else:
            _write_rows(path_or_file, columns, records)


def _write_rows(f, columns: list[str], records: list[dict]) -> None:
    writer = csv.DictWriter(f, fieldnames=columns)
    writer.writeheader()
    for rec in records:
        writer.writerow(rec)
