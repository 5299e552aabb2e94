"""Point-in-time lookups over a parsed caption sequence.

WHY: The renderer calls these once per frame with the current playback
time. They must answer "what is showing, what comes next, and where was
I" without ever failing: a frame with no active lyric is normal.

HOW: Each function is a single linear scan over the caller's sequence.
Nothing is cached and nothing is mutated, so concurrent callers can share
one list freely.

RULES:
- current_line: first line with start <= t <= end (both ends inclusive);
  on a shared boundary the earlier line wins
- next_line: first line with start > t
- current_index: position of current_line, or -1
- last_shown_index: position of the line with the greatest start <= t,
  whether or not it has ended; -1 before the first line starts. Holds the
  display position steady through silent gaps.
- None and -1 are the only "nothing here" answers; no function raises
"""

from __future__ import annotations

from typing import Optional, Sequence

from lyric_palette.captions.models import CaptionLine


def current_index(lines: Sequence[CaptionLine], t: float) -> int:
    """Position of the first line showing at time t, or -1 in a gap."""
    for position, line in enumerate(lines):
        if line.start_time <= t <= line.end_time:
            return position
    return -1


def current_line(lines: Sequence[CaptionLine], t: float) -> Optional[CaptionLine]:
    """The first line whose inclusive [start, end] range contains t."""
    position = current_index(lines, t)
    return lines[position] if position >= 0 else None


def next_line(lines: Sequence[CaptionLine], t: float) -> Optional[CaptionLine]:
    """The first line that starts strictly after t."""
    for line in lines:
        if line.start_time > t:
            return line
    return None


def last_shown_index(lines: Sequence[CaptionLine], t: float) -> int:
    """Position of the most recently started line at time t.

    Equal start times resolve to the later position, which for a sequence
    in start order is the line that began most recently.
    """
    best = -1
    best_start = float("-inf")
    for position, line in enumerate(lines):
        if line.start_time <= t and line.start_time >= best_start:
            best = position
            best_start = line.start_time
    return best
