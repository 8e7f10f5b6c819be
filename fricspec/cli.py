"""Command-line entry point.

Usage:
    fricspec spectrum speaker1.wav --start 1.20 --end 1.24
    fricspec spectrum speaker1.wav --method fft --dct-order 5
    fricspec batch data/*.wav --tier phones --label s --output s.csv
    fricspec batch a.wav b.wav --label S --window 0.03 --workers 4 --strict
"""

import argparse
import json
import logging
import sys

from tqdm import tqdm

from fricspec.analysis.batch import BatchDriver
from fricspec.analysis.engine import SpectralParams, analyze_buffer
from fricspec.analysis.models import SampleBuffer
from fricspec.audio.loader import read_samples
from fricspec.config import settings

logger = logging.getLogger("fricspec")


def _optional_float(value: str) -> float | None:
    """argparse type: a float, or "none" for an open band edge."""
    if value.strip().lower() in ("none", ""):
        return None
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number or 'none', got {value!r}")


def _add_spectral_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--method", choices=["multitaper", "fft"], default="multitaper")
    p.add_argument("--nw", type=float, default=settings.nw, help="time-bandwidth product")
    p.add_argument("--k", type=int, default=settings.k, help="number of tapers")
    p.add_argument("--combine", choices=["adaptive", "average"], default=settings.combine)
    p.add_argument("--band-min", type=_optional_float, default=settings.band_min_hz,
                   help="Hz, exclusive; 'none' leaves the band open below")
    p.add_argument("--band-max", type=_optional_float, default=settings.band_max_hz,
                   help="Hz, exclusive; 'none' leaves the band open above")
    p.add_argument("--dct-order", type=int, default=settings.dct_order)
    p.add_argument("--which", nargs="+", choices=["peak", "moments", "dct"],
                   default=["peak", "moments", "dct"])
    p.add_argument("--rate", type=int, default=settings.sample_rate,
                   help="resample to this rate before analysis (0 keeps the native rate)")


def _params(args: argparse.Namespace) -> SpectralParams:
    return SpectralParams.from_settings(
        settings,
        method=args.method,
        nw=args.nw,
        k=args.k,
        combine=args.combine,
        band=(args.band_min, args.band_max),
        dct_order=args.dct_order,
        which=frozenset(args.which),
    )


def cmd_spectrum(args: argparse.Namespace) -> int:
    params = _params(args)
    samples, sr = read_samples(args.file, args.start, args.end, sr=args.rate or None)
    desc = analyze_buffer(SampleBuffer(samples, sr), params)
    out = {"file": args.file, "sample_rate": sr, "n_samples": len(samples), **desc.as_dict()}
    print(json.dumps(out, indent=2))
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    driver = BatchDriver(_params(args), strict=args.strict, max_workers=args.workers)
    table = driver.files(
        args.files,
        args.tier,
        args.label,
        args.window,
        resample_rate=args.rate or None,
        progress=lambda paths: tqdm(paths, desc="Files", disable=args.quiet),
    )
    if args.output:
        table.write_csv(args.output)
        logger.info(f"Wrote {len(table)} rows to {args.output}")
    else:
        table.write_csv(sys.stdout)
    return 1 if table.errors and args.fail_on_error else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fricspec", description="Multitaper spectral descriptors")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("spectrum", help="descriptors of one section of a file")
    p.add_argument("file")
    p.add_argument("--start", type=float, default=None, help="seconds")
    p.add_argument("--end", type=float, default=None, help="seconds")
    _add_spectral_args(p)
    p.set_defaults(func=cmd_spectrum)

    p = sub.add_parser("batch", help="descriptors for labelled intervals across files")
    p.add_argument("files", nargs="+", help="audio files, each with a sibling .TextGrid")
    p.add_argument("--tier", default=settings.annotation_tier)
    p.add_argument("--label", required=True)
    p.add_argument("--window", type=float, default=settings.window_seconds, help="seconds")
    p.add_argument("--workers", type=int, default=settings.max_workers)
    p.add_argument("--strict", action="store_true", default=settings.strict,
                   help="abort on the first failing interval")
    p.add_argument("--fail-on-error", action="store_true",
                   help="exit with status 1 if any row carries an error")
    p.add_argument("--output", "-o", default=None, help="CSV path (default stdout)")
    p.add_argument("--quiet", "-q", action="store_true", help="no progress bar")
    _add_spectral_args(p)
    p.set_defaults(func=cmd_batch)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
