"""Dominant-color extraction and palette generation.

WHY: The video background should match the album cover. This package
turns cover art into a small, harmonious 3-color palette.

HOW: loader.py fetches/decodes the image, sampler.py filters pixels,
clusterer.py runs deterministic k-means, palette.py derives the scheme,
and extractor.py ties them together with latest-request-wins semantics.

RULES:
- Only image loading is asynchronous; the math is synchronous
- Degenerate images yield FALLBACK_COLOR, failed loads DEFAULT_PALETTE
"""

from lyric_palette.color.clusterer import dominant_color, kmeans
from lyric_palette.color.extractor import (
    Extraction,
    PaletteExtractor,
    SchemeCache,
    StaleExtractionError,
    extract_colors,
    extract_palette,
    extract_palette_or_default,
    image_key,
)
from lyric_palette.color.loader import DecodedImage, ImageLoader, ImageLoadError
from lyric_palette.color.models import Centroid, ColorSample, HSLColor, Palette, RGBColor
from lyric_palette.color.palette import PalettePolicy, default_palette, generate_scheme
from lyric_palette.color.sampler import sample

__all__ = [
    "Centroid",
    "ColorSample",
    "DecodedImage",
    "Extraction",
    "HSLColor",
    "ImageLoadError",
    "ImageLoader",
    "Palette",
    "PaletteExtractor",
    "PalettePolicy",
    "RGBColor",
    "SchemeCache",
    "StaleExtractionError",
    "default_palette",
    "dominant_color",
    "extract_colors",
    "extract_palette",
    "extract_palette_or_default",
    "generate_scheme",
    "image_key",
    "kmeans",
    "sample",
]
