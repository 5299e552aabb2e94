"""SRT caption parser — a line-oriented three-state machine.

WHY: Lyric timing arrives as SubRip (.srt) text. The renderer needs an
ordered list of CaptionLine records and must never crash on a sloppy
file: a broken block should cost that block, not the whole song.

HOW: Lines are trimmed and fed one at a time to a state machine whose
states are the tagged variants in captions.models:

  ExpectIndex --any line--> ExpectTime --time range--> ExpectText
       ^                                                  |
       +-------------------- blank line ------------------+

A blank line (or end of input) finalizes the current block. Time values
are converted with H*3600 + M*60 + S + ms/1000.

RULES:
- Never raises on malformed content
- Index lines are parsed loosely: leading digits win, otherwise NaN
- In ExpectTime a non-matching line is discarded and the state does NOT
  advance (stall). With stall_on_bad_time=False the rest of the block is
  skipped instead.
- A block is emitted only if it collected at least one text line
- Multi-line text is joined with "\\n" in encounter order
- Output order is input order; nothing is re-sorted
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from lyric_palette.captions.models import (
    CaptionLine,
    ExpectIndex,
    ExpectText,
    ExpectTime,
    ParseState,
    SkipBlock,
)
from lyric_palette.config import STALL_ON_BAD_TIME

TIME_PATTERN = re.compile(
    r"(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})"
)
_INDEX_PATTERN = re.compile(r"^[+-]?\d+")


def parse_timestamp(value: str) -> float:
    """Convert an SRT timestamp to seconds.

    ``"00:00:25,850"`` → ``25.85``; ``"00:01:00,000"`` → ``60.0``.
    """
    clock, millis = value.split(",")
    hours, minutes, seconds = (int(part) for part in clock.split(":"))
    return hours * 3600 + minutes * 60 + seconds + int(millis) / 1000


def parse_time_range(line: str) -> Optional[Tuple[float, float]]:
    """Return (start, end) seconds for a time-range line, or None."""
    match = TIME_PATTERN.search(line)
    if match is None:
        return None
    return parse_timestamp(match.group(1)), parse_timestamp(match.group(2))


def parse_index(line: str) -> Union[int, float]:
    """Parse a block number the lenient way.

    Leading digits are used ("12a" → 12). Anything without leading digits
    becomes NaN so the block can still accumulate.
    """
    match = _INDEX_PATTERN.match(line)
    if match is None:
        return float("nan")
    return int(match.group(0))


def _finalize(state: ParseState, captions: List[CaptionLine]) -> None:
    if isinstance(state, ExpectText) and state.text_lines:
        captions.append(
            CaptionLine(
                index=state.index,
                start_time=state.start_time,
                end_time=state.end_time,
                text="\n".join(state.text_lines),
            )
        )


def _step(state: ParseState, line: str, stall_on_bad_time: bool) -> ParseState:
    """Advance the machine by one non-blank line."""
    if isinstance(state, ExpectIndex):
        return ExpectTime(index=parse_index(line))

    if isinstance(state, ExpectTime):
        times = parse_time_range(line)
        if times is not None:
            return ExpectText(index=state.index, start_time=times[0], end_time=times[1])
        return state if stall_on_bad_time else SkipBlock()

    if isinstance(state, ExpectText):
        return ExpectText(
            index=state.index,
            start_time=state.start_time,
            end_time=state.end_time,
            text_lines=state.text_lines + (line,),
        )

    # SkipBlock swallows everything up to the next blank line
    return state


def parse_captions(
    content: str,
    stall_on_bad_time: Optional[bool] = None,
) -> List[CaptionLine]:
    """Parse SRT text into an ordered list of CaptionLine records.

    Args:
        content: Full caption file text. A leading BOM and CRLF line
            endings are tolerated.
        stall_on_bad_time: Keep waiting for a valid time line after a bad
            one (True) or drop the malformed block (False). Defaults to
            the LYRIC_PALETTE_STALL_ON_BAD_TIME setting.

    Returns:
        One CaptionLine per block that produced text, in input order.
    """
    if stall_on_bad_time is None:
        stall_on_bad_time = STALL_ON_BAD_TIME

    captions: List[CaptionLine] = []
    state: ParseState = ExpectIndex()

    for raw_line in content.lstrip("\ufeff").strip().split("\n"):
        line = raw_line.strip()
        if not line:
            _finalize(state, captions)
            state = ExpectIndex()
            continue
        state = _step(state, line, stall_on_bad_time)

    _finalize(state, captions)
    return captions


def load_captions(path: str | Path, stall_on_bad_time: Optional[bool] = None) -> List[CaptionLine]:
    """Read a UTF-8 caption file from disk and parse it."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_captions(text, stall_on_bad_time=stall_on_bad_time)
