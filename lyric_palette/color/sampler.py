"""Pixel sampler — strided RGBA walk with alpha and brightness filters.

WHY: A 200x200 cover is 40,000 pixels; clustering all of them buys
nothing over a regular subsample. Near-black, near-white and translucent
pixels carry no hue and would otherwise swamp the clusters.

HOW: The RGBA buffer is viewed as an (N, 4) uint8 array. Every
``stride``-th pixel is kept, then rows with alpha below the threshold or
mean brightness outside [min, max] are masked out.

RULES:
- Accepts raw bytes, a flat uint8 array, or an (H, W, 4) array
- The buffer must hold at least width * height * 4 bytes
- Returns an (n, 3) int array of surviving samples; n may be 0
- stride counts pixels, not bytes
"""

from __future__ import annotations

from typing import Union

import numpy as np

from lyric_palette.config import (
    ALPHA_THRESHOLD,
    MAX_BRIGHTNESS,
    MIN_BRIGHTNESS,
    SAMPLE_STRIDE,
)

PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


def _as_rgba_rows(pixels: PixelBuffer, width: int, height: int) -> np.ndarray:
    if isinstance(pixels, np.ndarray):
        flat = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(-1)
    else:
        flat = np.frombuffer(bytes(pixels), dtype=np.uint8)

    expected = width * height * 4
    if flat.size < expected:
        raise ValueError(
            "Pixel buffer holds {} bytes, expected {} for {}x{} RGBA".format(
                flat.size, expected, width, height
            )
        )
    return flat[:expected].reshape(-1, 4)


def sample(
    pixels: PixelBuffer,
    width: int,
    height: int,
    stride: int = SAMPLE_STRIDE,
    alpha_threshold: int = ALPHA_THRESHOLD,
    min_brightness: float = MIN_BRIGHTNESS,
    max_brightness: float = MAX_BRIGHTNESS,
) -> np.ndarray:
    """Return the RGB rows of visited pixels that pass both filters.

    Args:
        pixels: RGBA pixel data, row-major.
        width: Image width in pixels.
        height: Image height in pixels.
        stride: Visit every stride-th pixel (must be >= 1).

    Returns:
        Array of shape (n, 3), dtype int64. Empty (0, 3) when nothing
        survives.
    """
    if stride < 1:
        raise ValueError("stride must be >= 1, got {}".format(stride))

    visited = _as_rgba_rows(pixels, width, height)[::stride]
    rgb = visited[:, :3].astype(np.int64)
    brightness = rgb.sum(axis=1) / 3

    keep = (
        (visited[:, 3] >= alpha_threshold)
        & (brightness >= min_brightness)
        & (brightness <= max_brightness)
    )
    return rgb[keep]
