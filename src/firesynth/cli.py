"""Command-line front end: render one MIDI file to WAV.

Usage:
  firesynth song.mid bank.sf2 song.wav --sample-rate 48000 --effects
"""

from __future__ import annotations

import argparse
import logging
import sys
import traceback

from firesynth.config import DEFAULT_SAMPLE_RATE, RenderRequest
from firesynth.errors import RenderError
from firesynth.pipeline import render
from firesynth.synthesis.engine import EngineFactory


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="firesynth",
        description="Render a MIDI file through a SoundFont into a 32-bit float stereo WAV.",
    )
    parser.add_argument("midi", help="MIDI file (.mid/.midi)")
    parser.add_argument("soundfont", help="SoundFont file (.sf2/.sf3)")
    parser.add_argument("dest", help="Output WAV file")
    parser.add_argument(
        "-r", "--sample-rate",
        default=str(DEFAULT_SAMPLE_RATE),
        help=f"Output sample rate in Hz (default: {DEFAULT_SAMPLE_RATE})",
    )
    parser.add_argument(
        "--effects",
        action="store_true",
        help="Enable reverb and chorus",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline stages")
    return parser


def main(argv: list[str] | None = None, engine_factory: EngineFactory | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        request = RenderRequest.from_inputs(
            performance_path=args.midi,
            bank_path=args.soundfont,
            destination_path=args.dest,
            sample_rate=args.sample_rate,
            effects=args.effects,
        )
        summary = render(request, engine_factory=engine_factory)
    except RenderError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1
    except Exception:
        traceback.print_exc()
        return 2

    print("Done")
    print(
        f"  Saved: {summary.destination_path} "
        f"({summary.duration_s:.1f}s, {summary.frames} frames @ {summary.sample_rate} Hz)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
