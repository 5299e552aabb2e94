"""Caption record and parser state dataclasses.

WHY: The renderer asks "which lyric is showing at t?" once per frame. It
needs a small, immutable record per caption block, and the parser needs
a state representation in which only legal field combinations exist.

HOW: CaptionLine is a frozen dataclass. The parser state is a tagged
union of three frozen dataclasses, one per grammar state, each carrying
only the fields that state can have:
  ExpectIndex — waiting for the block number
  ExpectTime  — index known, waiting for the time-range line
  ExpectText  — index and times known, collecting text lines

RULES:
- All times are float seconds
- CaptionLine.index is opaque metadata; it may be NaN when the source
  index line is not numeric, and it need not be unique or contiguous
- start_time <= end_time is expected from well-formed input but is not
  enforced (the renderer only ever compares against it)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union


@dataclass(frozen=True)
class CaptionLine:
    """One timed lyric line parsed from a caption block.

    Attributes:
        index: Source block number (NaN if the index line was not numeric).
        start_time: Start of display, in seconds.
        end_time: End of display, in seconds (inclusive).
        text: Block text lines joined with ``"\\n"``.
    """

    index: Union[int, float]
    start_time: float
    end_time: float
    text: str

    def to_dict(self) -> dict:
        """Renderer-facing dict with camelCase keys."""
        return {
            "index": self.index,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "text": self.text,
        }


@dataclass(frozen=True)
class ExpectIndex:
    """Between blocks: the next non-blank line is a block number."""


@dataclass(frozen=True)
class ExpectTime:
    """Block number read; waiting for ``HH:MM:SS,mmm --> HH:MM:SS,mmm``."""

    index: Union[int, float]


@dataclass(frozen=True)
class ExpectText:
    """Timing read; every non-blank line until the next blank is text."""

    index: Union[int, float]
    start_time: float
    end_time: float
    text_lines: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SkipBlock:
    """Strict mode only: discard lines until the next blank line."""


ParseState = Union[ExpectIndex, ExpectTime, ExpectText, SkipBlock]
