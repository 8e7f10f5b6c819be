"""File upload endpoints for spectral descriptors."""

import os
import tempfile

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from fricspec.analysis.batch import BatchDriver
from fricspec.analysis.engine import SpectralParams, analyze_buffer
from fricspec.analysis.models import Descriptor, SampleBuffer
from fricspec.api.schemas import (
    DescriptorResponse,
    IntervalRowResponse,
    IntervalTableResponse,
    MomentsResponse,
    SpectrumSummaryResponse,
)
from fricspec.audio.loader import read_samples
from fricspec.config import settings
from fricspec.errors import DataShapeError, InvalidInput, InvalidParameter, MissingTier

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aac", ".wma"}


def _suffix(filename: str | None) -> str:
    if filename and "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


async def _save_upload(file: UploadFile, allowed: set[str] | None = None) -> str:
    """Validate an upload and write it to a temp file. Returns the path."""
    ext = _suffix(file.filename)
    if allowed is not None and ext and ext not in allowed:
        raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(allowed))}")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    with tempfile.NamedTemporaryFile(suffix=ext, delete=False) as tmp:
        tmp.write(content)
        return tmp.name


def _unlink(path: str | None) -> None:
    if path:
        try:
            os.unlink(path)
        except OSError:
            pass


def _params(method: str, nw: float | None, k: int | None, band_min: float | None,
            band_max: float | None, dct_order: int | None) -> SpectralParams:
    overrides = {"method": method}
    if nw is not None:
        overrides["nw"] = nw
    if k is not None:
        overrides["k"] = k
    if band_min is not None or band_max is not None:
        overrides["band"] = (band_min, band_max)
    if dct_order is not None:
        overrides["dct_order"] = dct_order
    return SpectralParams.from_settings(settings, **overrides)


def descriptor_response(desc: Descriptor) -> DescriptorResponse:
    return DescriptorResponse(
        peak_frequency=desc.peak_frequency,
        moments=MomentsResponse(
            cog=desc.moments.cog,
            sd=desc.moments.sd,
            skew=desc.moments.skew,
            kurtosis=desc.moments.kurtosis,
        ) if desc.moments else None,
        dct=list(desc.dct) if desc.dct is not None else None,
    )


@router.post("/descriptors", response_model=SpectrumSummaryResponse)
async def spectrum_descriptors(
    file: UploadFile = File(...),
    start: float | None = Form(None),
    end: float | None = Form(None),
    method: str = Form("multitaper"),
    nw: float | None = Form(None),
    k: int | None = Form(None),
    band_min: float | None = Form(None),
    band_max: float | None = Form(None),
    dct_order: int | None = Form(None),
    resample: bool = Form(True),
):
    """Descriptors of one section of an uploaded audio file."""
    tmp_path = None
    try:
        params = _params(method, nw, k, band_min, band_max, dct_order)
        tmp_path = await _save_upload(file, ALLOWED_EXTENSIONS)
        samples, sr = read_samples(tmp_path, start, end, sr=settings.sample_rate if resample else None)
        buffer = SampleBuffer(samples, sr)
        desc = analyze_buffer(buffer, params)
        return SpectrumSummaryResponse(
            method=params.method,
            sample_rate=buffer.sample_rate,
            n_samples=len(buffer),
            n_bins=len(buffer) // 2 + 1,
            descriptor=descriptor_response(desc),
        )
    except HTTPException:
        raise
    except (InvalidParameter, InvalidInput, DataShapeError) as e:
        raise HTTPException(422, str(e))
    except Exception:
        raise HTTPException(500, "Analysis failed")
    finally:
        _unlink(tmp_path)


@router.post("/intervals", response_model=IntervalTableResponse)
async def interval_descriptors(
    file: UploadFile = File(...),
    textgrid: UploadFile = File(...),
    label: str = Form(...),
    tier: str | None = Form(None),
    window: float | None = Form(None),
    method: str = Form("multitaper"),
    dct_order: int | None = Form(None),
):
    """Descriptors for every interval with ``label`` in an uploaded TextGrid."""
    tier = tier or settings.annotation_tier
    audio_path = grid_path = None
    try:
        params = _params(method, None, None, None, None, dct_order)
        audio_path = await _save_upload(file, ALLOWED_EXTENSIONS)
        grid_path = await _save_upload(textgrid)
        driver = BatchDriver(params, strict=False, max_workers=settings.max_workers)
        table = driver.intervals(
            audio_path, tier, label,
            window or settings.window_seconds,
            resample_rate=settings.sample_rate,
            annotation_path=grid_path,
        )
        return IntervalTableResponse(
            tier=tier,
            label=label,
            rows=[
                IntervalRowResponse(
                    index=r.index,
                    start_time=r.start_time,
                    end_time=r.end_time,
                    following_label=r.following_label,
                    window_start=r.window_start,
                    window_end=r.window_end,
                    descriptor=descriptor_response(r.descriptor) if r.descriptor else None,
                    error=f"{type(r.error).__name__}: {r.error}" if r.error else None,
                )
                for r in table
            ],
        )
    except HTTPException:
        raise
    except MissingTier as e:
        raise HTTPException(422, str(e))
    except InvalidParameter as e:
        raise HTTPException(422, str(e))
    except Exception:
        raise HTTPException(500, "Analysis failed")
    finally:
        _unlink(audio_path)
        _unlink(grid_path)
