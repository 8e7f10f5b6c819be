"""Pydantic response models for API."""

from pydantic import BaseModel


class MomentsResponse(BaseModel):
    cog: float
    sd: float
    skew: float
    kurtosis: float


class DescriptorResponse(BaseModel):
    peak_frequency: float | None = None
    moments: MomentsResponse | None = None
    dct: list[float] | None = None


class SpectrumSummaryResponse(BaseModel):
    method: str
    sample_rate: float
    n_samples: int
    n_bins: int
    descriptor: DescriptorResponse


class IntervalRowResponse(BaseModel):
    index: int | None = None
    start_time: float | None = None
    end_time: float | None = None
    following_label: str | None = None
    window_start: float | None = None
    window_end: float | None = None
    descriptor: DescriptorResponse | None = None
    error: str | None = None


class IntervalTableResponse(BaseModel):
    tier: str
    label: str
    rows: list[IntervalRowResponse] = []
