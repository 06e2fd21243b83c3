#!/usr/bin/env python3
"""
Coinflip — Binary Dither Video Engine
CLI entry point. Also importable as a library.

Usage:
    python coinflip.py                                  # BadApple.mp4 -> output.mp4
    python coinflip.py run --input clip.mp4 --output dithered.mp4 --workers 4
    python coinflip.py run --config coinflip.json
    python coinflip.py frame in.png out.png --index 12
    python coinflip.py list-effects
"""

import sys
import os
import argparse
import logging

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pydantic import ValidationError

from core.pipeline import run
from core.settings import ExtractSettings, RunSettings
from core.video_io import load_frame, save_frame
from effects import apply_effect, list_effects, EFFECTS, DEFAULT_EFFECT

__version__ = "0.1.0"


def _settings_from_args(args) -> RunSettings:
    """Build RunSettings from an optional JSON file plus CLI overrides."""
    overrides = {
        "input_video": getattr(args, "input", None),
        "output_video": getattr(args, "output", None),
        "frames_dir": getattr(args, "frames_dir", None),
        "modified_frames_dir": getattr(args, "modified_dir", None),
        "effect": getattr(args, "effect", None),
        "workers": getattr(args, "workers", None),
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    config = getattr(args, "config", None)
    if config:
        settings = RunSettings.from_file(config, **overrides)
    else:
        settings = RunSettings(**overrides)

    fps = getattr(args, "fps", None)
    if fps is not None:
        extract = ExtractSettings.model_validate({**settings.extract.model_dump(), "fps": fps})
        settings = settings.model_copy(update={"extract": extract})
    return settings


def cmd_run(args):
    """Extract, dither and recompile a video."""
    settings = _settings_from_args(args)
    print(f"Dithering {settings.input_video} with '{settings.effect}' "
          f"@ {settings.extract.fps:g}fps")
    result = run(settings)
    if not result.compiled:
        print("Error creating video:", file=sys.stderr)
        print(result.compile_error, file=sys.stderr)


def cmd_frame(args):
    """Dither a single image at a given frame index."""
    frame = load_frame(args.input)
    out = apply_effect(frame, args.effect, frame_index=args.index)
    save_frame(out, args.output)
    h, w = frame.shape[:2]
    print(f"Frame {args.index} ({w}x{h}) -> {args.output}")


def cmd_list_effects(args):
    """List all available effects."""
    effects = list_effects()
    print(f"\n  Effects ({len(effects)})")
    print(f"  {'-' * 50}")
    for e in effects:
        print(f"    {e['name']:20s} — {e['description']}")
        params_str = ", ".join(f"{k}={v}" for k, v in e["params"].items())
        print(f"    {'':20s}   Params: {params_str}")
    print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coinflip",
        description="Coinflip — binary coin-flip dither for video",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # run
    p = sub.add_parser("run", help="Dither a whole video (default when no command is given)")
    p.add_argument("--input", help="Source video (default BadApple.mp4)")
    p.add_argument("--output", help="Output video (default output.mp4)")
    p.add_argument("--frames-dir", help="Scratch dir for extracted frames (default frames)")
    p.add_argument("--modified-dir", help="Scratch dir for dithered frames (default modified_frames)")
    p.add_argument("--fps", type=float, help="Sampling and output frame rate (default 30)")
    p.add_argument("--effect", choices=sorted(EFFECTS), help="Dither effect")
    p.add_argument("--workers", type=int, help="Frames processed in parallel (default 1)")
    p.add_argument("--config", help="JSON settings file")

    # frame
    p = sub.add_parser("frame", help="Dither a single image")
    p.add_argument("input", help="Input image")
    p.add_argument("output", help="Output PNG")
    p.add_argument("--index", type=int, default=0, help="Frame index (shifts the white stream)")
    p.add_argument("--effect", choices=sorted(EFFECTS), default=DEFAULT_EFFECT, help="Dither effect")

    # list-effects
    sub.add_parser("list-effects", help="List available dither effects")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        None: cmd_run,
        "run": cmd_run,
        "frame": cmd_frame,
        "list-effects": cmd_list_effects,
    }

    try:
        commands[args.command](args)
    except ValidationError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
