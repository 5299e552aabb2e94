"""Command-line interface for lyric_palette.

WHY: Video authors prepare renders from a terminal: check that an SRT
file parses the way they expect, preview which background a cover
produces, and write the props document the renderer consumes.

HOW: argparse with three sub-commands:
  captions FILE [--at SECONDS] [--strict]
  palette IMAGE [--policy lightness|hue]
  props --srt FILE --cover IMAGE --audio FILE --title TEXT [--output PATH]
Results are JSON on stdout; status messages go to stderr. The palette
and props commands run the async extraction via asyncio.run().

RULES:
- Exit code 0 on success, 1 on any reported error
- Status output goes to stderr (stdout stays machine-readable)
- props always succeeds on an unreadable cover: it logs and uses the
  default palette, exactly like the renderer does
- argv=None means sys.argv; explicit argv is for tests
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from lyric_palette.captions.parser import load_captions
from lyric_palette.captions.query import (
    current_index,
    current_line,
    last_shown_index,
    next_line,
)
from lyric_palette.color.extractor import extract_colors, extract_palette_or_default
from lyric_palette.color.loader import ImageLoadError
from lyric_palette.config import (
    DEFAULT_FPS,
    PALETTE_POLICY,
    SUPPORTED_POLICIES,
    configure_logging,
)
from lyric_palette.render import (
    RenderPropsError,
    background_gradient,
    build_render_props,
    caption_json,
    write_render_props,
)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _emit(data: object) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _run_captions(args: argparse.Namespace) -> None:
    path = Path(args.file)
    if not path.is_file():
        _fail("File not found: {}".format(path))

    lyrics = load_captions(path, stall_on_bad_time=False if args.strict else None)
    _status("Parsed {} caption(s) from {}".format(len(lyrics), path.name))

    if args.at is None:
        _emit([caption_json(line) for line in lyrics])
        return

    active = current_line(lyrics, args.at)
    upcoming = next_line(lyrics, args.at)
    _emit({
        "time": args.at,
        "current": caption_json(active) if active else None,
        "next": caption_json(upcoming) if upcoming else None,
        "currentIndex": current_index(lyrics, args.at),
        "lastShownIndex": last_shown_index(lyrics, args.at),
    })


async def _run_palette(args: argparse.Namespace) -> None:
    _status("Extracting colors from {}...".format(args.image))
    try:
        extraction = await extract_colors(args.image, policy=args.policy)
    except ImageLoadError as e:
        _fail(str(e))
        return

    _status("  {} usable samples".format(extraction.sample_count))
    _emit({
        "dominant": extraction.dominant.to_dict(),
        "palette": extraction.palette.to_dict(),
        "gradient": background_gradient(extraction.palette),
        "sampleCount": extraction.sample_count,
    })


async def _run_props(args: argparse.Namespace) -> None:
    srt_path = Path(args.srt)
    if not srt_path.is_file():
        _fail("File not found: {}".format(srt_path))

    lyrics = load_captions(srt_path, stall_on_bad_time=False if args.strict else None)
    _status("Parsed {} caption(s)".format(len(lyrics)))

    palette = await extract_palette_or_default(args.cover, policy=args.policy)

    try:
        props = build_render_props(
            lyrics,
            cover_path=args.cover,
            audio_path=args.audio,
            srt_path=args.srt,
            song_title=args.title,
            palette=palette,
            fps=args.fps,
            duration_s=args.duration,
        )
    except RenderPropsError as e:
        _fail(str(e))
        return

    if args.output:
        saved = write_render_props(props, args.output)
        _status("Saved: {}".format(saved))
    else:
        _emit(props)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="lyric-palette",
        description="Parse lyric captions and derive background palettes "
                    "from cover art for music-video rendering.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL env or INFO).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    captions = sub.add_parser("captions", help="Parse an SRT file, optionally look up a time.")
    captions.add_argument("file", help="Path to the .srt caption file.")
    captions.add_argument(
        "--at",
        type=float,
        default=None,
        help="Playback time in seconds to look up.",
    )
    captions.add_argument(
        "--strict",
        action="store_true",
        help="Drop blocks with a malformed time line instead of stalling.",
    )

    palette = sub.add_parser("palette", help="Extract a palette from an image path or URL.")
    palette.add_argument("image", help="Image file path or http(s) URL.")
    palette.add_argument(
        "--policy",
        choices=sorted(SUPPORTED_POLICIES),
        default=PALETTE_POLICY,
        help="Palette policy (default: %(default)s).",
    )

    props = sub.add_parser("props", help="Write the validated render props document.")
    props.add_argument("--srt", required=True, help="Path to the .srt caption file.")
    props.add_argument("--cover", required=True, help="Cover image path or URL.")
    props.add_argument("--audio", required=True, help="Audio file path (passed through).")
    props.add_argument("--title", required=True, help="Song title.")
    props.add_argument("--output", default=None, help="Write JSON here instead of stdout.")
    props.add_argument(
        "--policy",
        choices=sorted(SUPPORTED_POLICIES),
        default=PALETTE_POLICY,
        help="Palette policy (default: %(default)s).",
    )
    props.add_argument(
        "--fps",
        type=int,
        default=DEFAULT_FPS,
        help="Frames per second (default: %(default)s).",
    )
    props.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Audio duration in seconds; adds durationInFrames.",
    )
    props.add_argument(
        "--strict",
        action="store_true",
        help="Drop blocks with a malformed time line instead of stalling.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m lyric_palette`` and ``lyric-palette``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "captions":
            _run_captions(args)
        elif args.command == "palette":
            asyncio.run(_run_palette(args))
        else:
            asyncio.run(_run_props(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (OSError, ValueError) as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
