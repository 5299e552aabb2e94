"""RGB -> HSL conversion in the units the palette code uses.

colorsys works in 0-1 floats with (h, l, s) ordering; these helpers wrap
it so the rest of the package can speak degrees and percentages.
"""

from __future__ import annotations

import colorsys
from typing import Union

from lyric_palette.color.models import Centroid, HSLColor, RGBColor

ColorLike = Union[RGBColor, Centroid, tuple, list]


def to_rgb_floats(color: ColorLike) -> tuple:
    """Accept an RGBColor, Centroid or (r, g, b) sequence; return floats."""
    if isinstance(color, (RGBColor, Centroid)):
        return (float(color.r), float(color.g), float(color.b))
    r, g, b = color
    return (float(r), float(g), float(b))


def rgb_to_hsl(color: ColorLike) -> HSLColor:
    """Convert 0-255 RGB to hue degrees and saturation/lightness percent.

    Grays have hue 0 and saturation 0.
    """
    r, g, b = to_rgb_floats(color)
    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255, g / 255, b / 255)
    return HSLColor(hue=hue * 360, saturation=saturation * 100, lightness=lightness * 100)

