"""Audio file loading utilities."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import librosa
import numpy as np


def read_samples(
    file_path_or_buffer: Union[str, Path, BytesIO],
    start_time: float | None = None,
    end_time: float | None = None,
    sr: int | None = None,
) -> tuple[np.ndarray, int]:
    """Load a mono section of an audio file or buffer.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.
    start_time, end_time:
        Section bounds in seconds. ``None`` means the start / end of the file.
    sr:
        Target sample rate. Defaults to the file's native rate.

    Returns
    -------
    tuple[np.ndarray, int]
        A tuple of (audio_array, sample_rate).
    """
    offset = 0.0 if start_time is None else float(start_time)
    duration = None if end_time is None else float(end_time) - offset
    audio, sample_rate = librosa.load(
        file_path_or_buffer, sr=sr, mono=True, offset=offset, duration=duration,
    )
    return audio, int(sample_rate)


def resample(audio: np.ndarray, from_rate: int, to_rate: int) -> np.ndarray:
    """Resample a mono signal. Returns the input unchanged if rates match."""
    if int(from_rate) == int(to_rate):
        return audio
    return librosa.resample(np.asarray(audio, dtype=np.float32), orig_sr=from_rate, target_sr=to_rate)
