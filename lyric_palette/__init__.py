"""Lyric Palette — caption timing and cover-color core for music videos.

WHY: A music-video renderer needs two pieces of real computation: which
lyric line is on screen at a given instant, and which background colors
fit the album cover. Everything else (animation, layout, audio playback)
is presentation glue that only needs structured answers from this core.

HOW: Two independent sub-packages feed a thin outer surface:
  captions — SRT parsing state machine and point-in-time lookups
  color    — pixel sampling, k-means clustering, palette generation,
             async image loading with latest-request-wins supersession
The render module turns their output into renderer props; cli and
server expose everything from a terminal or over HTTP.

RULES:
- Parsing and lookups are pure and never raise on malformed input
- Color extraction has exactly one suspension point (image load/decode)
- All times are float seconds; all RGB channels are 0-255
"""

__version__ = "0.1.0"
