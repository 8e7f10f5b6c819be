"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Audio
    sample_rate: int = 16000  # analysis rate after resampling

    # Multitaper
    nw: float = 4.0
    k: int = 8
    combine: str = "adaptive"  # "adaptive" | "average"

    # FFT baseline
    fft_window: str = "hamming"

    # Normalisation / descriptors
    band_min_hz: float | None = 500.0
    band_max_hz: float | None = None
    dct_order: int = 3

    # Batch
    window_seconds: float = 0.04
    annotation_tier: str = "phones"
    max_workers: int = 1
    strict: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50

    model_config = {"env_prefix": "FRICSPEC_"}


settings = Settings()
