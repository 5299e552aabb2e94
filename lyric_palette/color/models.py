"""Color dataclasses shared by the sampler, clusterer and palette generator.

WHY: Samples, centroids and palette entries are all "a color", but with
different numeric contracts: samples are exact 0-255 integers, centroids
are running float means, and palette entries may live in RGB or HSL
depending on the palette policy. Separate types keep those contracts
visible at every seam.

HOW: Four dataclasses:
  RGBColor  — immutable integer RGB (also the ColorSample type)
  Centroid  — mutable float RGB used while clustering
  HSLColor  — immutable hue (degrees) / saturation (%) / lightness (%)
  Palette   — exactly three colors plus the space they are expressed in

RULES:
- RGB channels are 0-255; hue is [0, 360); saturation/lightness are 0-100
- Centroid values stay floats until exposed via rounded()
- Rounding is half-up (128.5 -> 129), matching browser Math.round
- A Palette always holds exactly 3 colors of a single type
"""

from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass
from typing import Tuple, Union


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RGBColor:
    """An integer RGB color, 0-255 per channel."""

    r: int
    g: int
    b: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_css(self) -> str:
        return "rgb({}, {}, {})".format(self.r, self.g, self.b)

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b}


ColorSample = RGBColor
"""One pixel that survived sampling."""


@dataclass
class Centroid:
    """Running mean color of one k-means cluster."""

    r: float
    g: float
    b: float

    @property
    def saturation(self) -> float:
        """HSL saturation in [0, 1], derived on demand for final selection."""
        _, _, saturation = colorsys.rgb_to_hls(self.r / 255, self.g / 255, self.b / 255)
        return saturation

    def rounded(self) -> RGBColor:
        return RGBColor(
            r=round_half_up(self.r),
            g=round_half_up(self.g),
            b=round_half_up(self.b),
        )


@dataclass(frozen=True)
class HSLColor:
    """Hue in degrees, saturation and lightness in percent."""

    hue: float
    saturation: float
    lightness: float

    def to_css(self) -> str:
        return "hsl({:g}, {:g}%, {:g}%)".format(
            round(self.hue, 2), round(self.saturation, 2), round(self.lightness, 2)
        )

    def to_dict(self) -> dict:
        return {
            "hue": self.hue,
            "saturation": self.saturation,
            "lightness": self.lightness,
        }


PaletteColor = Union[RGBColor, HSLColor]


@dataclass(frozen=True)
class Palette:
    """Ordered three-color background description.

    Attributes:
        colors: Exactly three colors, all RGBColor or all HSLColor.
        space: ``"rgb"`` or ``"hsl"``, matching the color type.
    """

    colors: Tuple[PaletteColor, PaletteColor, PaletteColor]
    space: str = "rgb"

    def __post_init__(self) -> None:
        if len(self.colors) != 3:
            raise ValueError("A palette holds exactly 3 colors, got {}".format(len(self.colors)))

    def css_colors(self) -> list:
        return [color.to_css() for color in self.colors]

    def to_dict(self) -> dict:
        return {
            "space": self.space,
            "colors": [color.to_dict() for color in self.colors],
            "css": self.css_colors(),
        }
