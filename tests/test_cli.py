"""Tests for the command-line interface."""

import csv
import json

import pytest

from fricspec.cli import _params, build_parser, main


def test_spectrum_command_prints_descriptors(annotated_wav, capsys):
    code = main(["spectrum", str(annotated_wav), "--start", "0.28", "--end", "0.32"])
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["sample_rate"] == 16000
    assert out["cog"] > 0
    assert {"peak", "sd", "skew", "kurtosis", "dct0", "dct3"} <= out.keys()


def test_spectrum_command_subset(annotated_wav, capsys):
    main(["spectrum", str(annotated_wav), "--start", "0.28", "--end", "0.32",
          "--which", "peak", "--rate", "0"])
    out = json.loads(capsys.readouterr().out)
    assert out["sample_rate"] == 22050
    assert "peak" in out and "cog" not in out


def test_batch_command_writes_csv(annotated_wav, tmp_path):
    out_path = tmp_path / "s.csv"
    code = main(["batch", str(annotated_wav), str(annotated_wav),
                 "--label", "s", "--output", str(out_path), "-q", "--workers", "2"])
    assert code == 0
    with open(out_path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 4
    assert [r["start_time"] for r in rows] == ["0.2", "0.6", "0.2", "0.6"]
    assert all(r["error"] == "" for r in rows)
    assert float(rows[0]["cog"]) > 0


def test_batch_command_fail_on_error(tmp_path, annotated_wav):
    missing = tmp_path / "nothing.wav"
    code = main(["batch", str(annotated_wav), str(missing), "--label", "s",
                 "--output", str(tmp_path / "x.csv"), "-q", "--fail-on-error"])
    assert code == 1


def test_band_edges_accept_none():
    args = build_parser().parse_args(["spectrum", "x.wav", "--band-min", "none", "--band-max", "None"])
    assert args.band_min is None and args.band_max is None
    assert _params(args).band == (None, None)

    args = build_parser().parse_args(["spectrum", "x.wav", "--band-max", "6000"])
    assert args.band_max == 6000.0
    assert _params(args).band[1] == 6000.0

    with pytest.raises(SystemExit):
        build_parser().parse_args(["spectrum", "x.wav", "--band-min", "low"])


def test_spectrum_command_without_band(annotated_wav, capsys):
    code = main(["spectrum", str(annotated_wav), "--start", "0.28", "--end", "0.32", "--band-min", "none"])
    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["cog"] > 0
