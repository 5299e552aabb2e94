"""Timed-caption parsing and lookup.

WHY: Lyrics are authored as SRT files; the renderer needs per-frame
answers about which line is active. This package owns both halves.

HOW: parser.py turns text into CaptionLine records; query.py answers
current / next / last-shown lookups against a parsed list.

RULES:
- Parsing never raises on malformed content
- Lookups are pure linear scans and never raise
"""

from lyric_palette.captions.models import CaptionLine
from lyric_palette.captions.parser import load_captions, parse_captions, parse_timestamp
from lyric_palette.captions.query import (
    current_index,
    current_line,
    last_shown_index,
    next_line,
)

__all__ = [
    "CaptionLine",
    "current_index",
    "current_line",
    "last_shown_index",
    "load_captions",
    "next_line",
    "parse_captions",
    "parse_timestamp",
]
