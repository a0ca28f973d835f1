"""Print the voiced intervals of an audio file as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

import soundfile as sf

from voicespan.audio import AnalysisError, AnalysisSettings, analyze, analyze_channels, downmix
from voicespan.store.settings_store import DEFAULT_PRESET, SettingsStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find the audible parts of an audio file.")
    parser.add_argument("input", type=Path, help="WAV/FLAC/OGG file readable by soundfile.")
    parser.add_argument("--threshold", type=float, help="Silence threshold in dBFS.")
    parser.add_argument("--min-silence", type=float, dest="min_silence_duration", help="Minimum silence in ms.")
    parser.add_argument("--padding", type=float, help="Padding added around silences in ms.")
    parser.add_argument("--chunk-size", type=float, dest="chunk_size", help="Analysis window in ms.")
    parser.add_argument(
        "--preset",
        type=Path,
        help="JSON preset to start from (default: built-in -40 dB / 500 ms / 100 ms / 10 ms).",
    )
    parser.add_argument(
        "--save-preset",
        action="store_true",
        help="Write the effective settings back to --preset.",
    )
    parser.add_argument("--per-channel", action="store_true", help="Analyse each channel separately.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.save_preset and not args.preset:
        parser.error("--save-preset requires --preset")

    overrides = {
        "threshold": args.threshold,
        "min_silence_duration": args.min_silence_duration,
        "padding": args.padding,
        "chunk_size": args.chunk_size,
    }
    try:
        if args.preset:
            store = SettingsStore(args.preset)
            settings = store.update(**overrides) if args.save_preset else _apply(store.get(), overrides)
        else:
            settings = _apply(DEFAULT_PRESET, overrides)
        audio, sample_rate = sf.read(str(args.input), dtype="float32", always_2d=True)
        if args.per_channel:
            results = analyze_channels(audio, sample_rate, settings)
            output = {"channels": [result.intervals() for result in results]}
        else:
            output = {"intervals": analyze(downmix(audio), sample_rate, settings).intervals()}
    except AnalysisError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except RuntimeError as exc:
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1

    output["settings"] = settings.to_dict()
    output["sample_rate"] = sample_rate
    print(json.dumps(output))
    return 0


def _apply(base: AnalysisSettings, overrides: dict) -> AnalysisSettings:
    return replace(base, **{key: value for key, value in overrides.items() if value is not None})


if __name__ == "__main__":
    sys.exit(main())
