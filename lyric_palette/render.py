"""Renderer-facing props: timing helpers, gradient CSS, validated props JSON.

WHY: The video composition consumes a single props document (lyrics,
asset paths, title, background colors) and converts frames to seconds
on every frame. Producing that document here, validated against a
schema, catches a broken lyrics list or palette before a long render
starts rather than halfway through it.

HOW: build_render_props() assembles the document with the renderer's
camelCase keys and validates it with jsonschema against
RENDER_PROPS_SCHEMA. lyric_frame() is the per-frame lookup the lyrics
panel needs: current text (or a music-note placeholder) and next text.

RULES:
- Times are seconds; frame -> seconds is frame / fps
- Composition length is ceil(duration_seconds * fps) frames
- colors is always 3 CSS color strings; DEFAULT_PALETTE when no palette
- Validation failures raise RenderPropsError (wrapping the jsonschema error)
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import jsonschema

from lyric_palette.captions.models import CaptionLine
from lyric_palette.captions.query import current_line, last_shown_index, next_line
from lyric_palette.color.models import Palette
from lyric_palette.color.palette import default_palette

IDLE_LYRIC = "♪"
"""Shown in the lyrics panel when no line is active."""

_CAPTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["index", "startTime", "endTime", "text"],
    "properties": {
        # NaN indices serialize as null
        "index": {"type": ["integer", "number", "null"]},
        "startTime": {"type": "number", "minimum": 0},
        "endTime": {"type": "number", "minimum": 0},
        "text": {"type": "string", "minLength": 1},
    },
    "additionalProperties": False,
}

RENDER_PROPS_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Music video render props",
    "type": "object",
    "required": ["lyrics", "coverPath", "audioPath", "srtPath", "songTitle", "colors"],
    "properties": {
        "lyrics": {"type": "array", "items": _CAPTION_SCHEMA},
        "coverPath": {"type": "string", "minLength": 1},
        "audioPath": {"type": "string", "minLength": 1},
        "srtPath": {"type": "string", "minLength": 1},
        "songTitle": {"type": "string"},
        "colors": {
            "type": "array",
            "items": {"type": "string", "pattern": "^(rgb|hsl)\\("},
            "minItems": 3,
            "maxItems": 3,
        },
        "fps": {"type": "integer", "minimum": 1},
        "durationInFrames": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}


class RenderPropsError(ValueError):
    """Raised when assembled render props fail schema validation."""


def frame_to_seconds(frame: int, fps: float) -> float:
    if fps <= 0:
        raise ValueError("fps must be positive, got {}".format(fps))
    return frame / fps


def duration_in_frames(seconds: float, fps: float) -> int:
    """Frames needed to cover ``seconds`` at ``fps`` (never less than 1)."""
    if fps <= 0:
        raise ValueError("fps must be positive, got {}".format(fps))
    return max(1, math.ceil(seconds * fps))


def background_gradient(palette: Optional[Palette] = None, angle: int = 135) -> str:
    """CSS linear-gradient for a palette (default palette when None)."""
    palette = palette or default_palette()
    return "linear-gradient({}deg, {})".format(angle, ", ".join(palette.css_colors()))


def lyric_frame(lyrics: Sequence[CaptionLine], frame: int, fps: float) -> Dict[str, Any]:
    """What the lyrics panel shows at one frame."""
    t = frame_to_seconds(frame, fps)
    active = current_line(lyrics, t)
    upcoming = next_line(lyrics, t)
    return {
        "time": t,
        "current": active.text if active else IDLE_LYRIC,
        "active": active is not None,
        "next": upcoming.text if upcoming else None,
        "lastShownIndex": last_shown_index(lyrics, t),
    }


def caption_json(line: CaptionLine) -> Dict[str, Any]:
    """CaptionLine as a JSON-safe dict (NaN index becomes None)."""
    data = line.to_dict()
    if isinstance(data["index"], float) and math.isnan(data["index"]):
        data["index"] = None
    return data


def build_render_props(
    lyrics: Sequence[CaptionLine],
    cover_path: str,
    audio_path: str,
    srt_path: str,
    song_title: str,
    palette: Optional[Palette] = None,
    fps: Optional[int] = None,
    duration_s: Optional[float] = None,
) -> Dict[str, Any]:
    """Assemble and validate the composition props document.

    fps and durationInFrames are included only when fps is given;
    durationInFrames additionally needs duration_s.

    Raises:
        RenderPropsError: If the document does not match RENDER_PROPS_SCHEMA.
    """
    props: Dict[str, Any] = {
        "lyrics": [caption_json(line) for line in lyrics],
        "coverPath": str(cover_path),
        "audioPath": str(audio_path),
        "srtPath": str(srt_path),
        "songTitle": song_title,
        "colors": (palette or default_palette()).css_colors(),
    }
    if fps is not None:
        props["fps"] = fps
        if duration_s is not None:
            props["durationInFrames"] = duration_in_frames(duration_s, fps)

    try:
        jsonschema.validate(instance=props, schema=RENDER_PROPS_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise RenderPropsError("Invalid render props: {}".format(exc.message)) from exc
    return props


def write_render_props(props: Dict[str, Any], path: str | Path) -> Path:
    """Write props as pretty UTF-8 JSON and return the path."""
    out = Path(path)
    out.write_text(json.dumps(props, indent=2, ensure_ascii=False), encoding="utf-8")
    return out
