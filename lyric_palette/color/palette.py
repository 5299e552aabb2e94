"""Three-color background schemes derived from one dominant color.

WHY: The renderer draws a diagonal gradient behind the record sleeve.
Three closely related colors keep it soft; deriving them from the
cover's dominant color ties the background to the artwork.

HOW: Two policies, selected once via configuration:
  lightness — [base tinted 10% toward white, base, base tinted 20%]
  hue       — three pastel HSL variants at hue, hue+10 and hue-5

RULES:
- Always exactly 3 colors
- Tinting a channel v by f gives v + (255 - v) * f, clamped to [0, 255]
- Hue offsets wrap into [0, 360)
- Every emitted channel / percentage stays inside its valid range
"""

from __future__ import annotations

import enum
from typing import Optional, Union

from lyric_palette.color.convert import ColorLike, rgb_to_hsl, to_rgb_floats
from lyric_palette.color.models import HSLColor, Palette, RGBColor, round_half_up
from lyric_palette.config import DEFAULT_PALETTE, load_policy

LIGHTNESS_BLEND_FACTORS = (0.1, 0.0, 0.2)

# (hue offset degrees, saturation %, lightness %)
HUE_VARIANTS = ((0, 75, 82), (10, 80, 78), (-5, 70, 85))


class PalettePolicy(str, enum.Enum):
    """How a palette is derived from the base color."""

    LIGHTNESS = "lightness"
    HUE = "hue"


def tint(value: float, factor: float) -> int:
    """Move one channel toward white by factor, clamped and rounded."""
    blended = value + (255 - value) * factor
    return round_half_up(min(max(blended, 0.0), 255.0))


def blend_toward_white(color: ColorLike, factor: float) -> RGBColor:
    r, g, b = to_rgb_floats(color)
    return RGBColor(r=tint(r, factor), g=tint(g, factor), b=tint(b, factor))


def lightness_scheme(base: ColorLike) -> Palette:
    colors = tuple(blend_toward_white(base, factor) for factor in LIGHTNESS_BLEND_FACTORS)
    return Palette(colors=colors, space="rgb")


def hue_scheme(base: Union[ColorLike, HSLColor, float]) -> Palette:
    """Pastel HSL variants around the base hue.

    base may be a color or a bare hue in degrees.
    """
    if isinstance(base, (int, float)):
        hue = float(base)
    elif isinstance(base, HSLColor):
        hue = base.hue
    else:
        hue = rgb_to_hsl(base).hue

    colors = tuple(
        HSLColor(hue=(hue + offset) % 360, saturation=saturation, lightness=lightness)
        for offset, saturation, lightness in HUE_VARIANTS
    )
    return Palette(colors=colors, space="hsl")


def generate_scheme(
    base: Union[ColorLike, HSLColor],
    policy: Optional[Union[PalettePolicy, str]] = None,
) -> Palette:
    """Derive the 3-color palette for a base color.

    Args:
        base: Dominant color (RGBColor, Centroid, (r, g, b) or, for the
            hue policy, an HSLColor).
        policy: PalettePolicy or its name; defaults to the configured
            LYRIC_PALETTE_POLICY.

    Raises:
        ValueError: If the policy name is unknown.
    """
    resolved = PalettePolicy(load_policy(policy.value if isinstance(policy, PalettePolicy) else policy))
    if resolved is PalettePolicy.HUE:
        return hue_scheme(base)
    if isinstance(base, HSLColor):
        raise ValueError("The lightness policy needs an RGB base color")
    return lightness_scheme(base)


def default_palette() -> Palette:
    """Palette shown when no cover color is available."""
    return Palette(colors=tuple(RGBColor(*rgb) for rgb in DEFAULT_PALETTE), space="rgb")
