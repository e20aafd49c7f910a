#!/usr/bin/env python3
"""
audio_master - entry point

Masters a decoded audio file to a loudness target and true-peak ceiling
and writes a 16- or 24-bit WAV.

Usage:
    python main.py input.wav output.wav [--target-lufs -14] [--ceiling -1]

Example:
    python main.py mix.wav mix_mastered.wav --preset studio
"""

import argparse
import logging
import sys
from pathlib import Path

from audio_master.core import (
    DitherMode,
    InvalidConfiguration,
    MasteringConfig,
    OUTPUT_PRESETS,
    load_audio,
    master_buffer,
    write_wav,
)
from audio_master.utils import (
    format_channels,
    format_duration,
    format_gain,
    format_lufs,
    format_sample_rate,
    format_true_peak,
)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Normalize loudness, limit true peaks and export WAV."
    )
    ap.add_argument("input", type=Path, help="Input audio file (WAV or MP3)")
    ap.add_argument("output", type=Path, help="Output WAV path")
    ap.add_argument("--preset", choices=sorted(OUTPUT_PRESETS), default=None,
                    help="Output format preset")
    ap.add_argument("--target-lufs", type=float, default=-14.0, help="Target loudness")
    ap.add_argument("--ceiling", type=float, default=-1.0, help="True-peak ceiling in dBTP")
    ap.add_argument("--sample-rate", type=int, default=None, help="Output sample rate")
    ap.add_argument("--bit-depth", type=int, default=None, help="Output bit depth (16/24)")
    ap.add_argument("--dither", choices=[m.value for m in DitherMode],
                    default=DitherMode.TPDF.value, help="Dither for 16-bit output")
    ap.add_argument("--no-normalize", action="store_true", help="Skip loudness normalization")
    ap.add_argument("--no-limit", action="store_true", help="Skip true-peak limiting")
    ap.add_argument("--seed", type=int, default=None, help="Seed for dither noise")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def config_from_args(args: argparse.Namespace) -> MasteringConfig:
    overrides = {
        "target_lufs": args.target_lufs,
        "ceiling_db": args.ceiling,
        "dither": args.dither,
        "normalize_loudness": not args.no_normalize,
        "true_peak_limit": not args.no_limit,
    }
    if args.sample_rate is not None:
        overrides["sample_rate"] = args.sample_rate
    if args.bit_depth is not None:
        overrides["bit_depth"] = args.bit_depth

    if args.preset:
        return MasteringConfig.from_preset(args.preset, **overrides)
    return MasteringConfig(**overrides)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except InvalidConfiguration as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        source = load_audio(args.input)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(
        f"Input: {args.input.name}, {format_channels(source.channels)}, "
        f"{format_sample_rate(source.sample_rate)}, {format_duration(source.duration_seconds)}"
    )

    report = master_buffer(source, config)
    try:
        write_wav(
            args.output,
            report.buffer,
            config.sample_rate,
            config.bit_depth,
            dither=config.dither,
            seed=args.seed,
        )
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Source: {format_lufs(report.source_lufs)}, {format_true_peak(report.source_peak_db)}")
    print(f"Gain:   {format_gain(report.gain_db)}")
    print(f"Output: {format_lufs(report.output_lufs)}, {format_true_peak(report.output_peak_db)}")
    print(f"[OK] Wrote: {args.output.resolve()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
