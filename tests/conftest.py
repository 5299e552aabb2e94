"""Shared test fixtures for the lyric_palette test suite.

WHY: Parser, query, render and API tests all need the same small SRT
song and the same parsed caption list. Color tests need real encoded
images without shipping binary fixtures.

HOW: The SRT text is a module constant; fixtures hand out fresh copies.
make_image_bytes() encodes a solid or two-block image with Pillow so
tests exercise the real decode path.

RULES:
- SAMPLE_SRT times are chosen so every boundary case has a known answer
- Images are generated in memory; no files are written unless a test
  asks for tmp_path
"""

from __future__ import annotations

import io
from typing import List, Optional, Tuple

import numpy as np
import pytest
from PIL import Image

from lyric_palette.captions.models import CaptionLine
from lyric_palette.color.loader import DecodedImage


# ---------------------------------------------------------------------------
# Captions
# ---------------------------------------------------------------------------

SAMPLE_SRT = """1
00:00:01,000 --> 00:00:03,500
Hello darkness

2
00:00:03,500 --> 00:00:06,000
my old friend
I've come to talk

3
00:00:08,250 --> 00:00:10,000
with you again
"""


@pytest.fixture
def sample_srt() -> str:
    """Three blocks: a shared boundary at 3.5s and a gap from 6.0s to 8.25s."""
    return SAMPLE_SRT


@pytest.fixture
def two_lines() -> List[CaptionLine]:
    """[{0, 0, 2.5, "A"}, {1, 2.5, 5, "B"}]."""
    return [
        CaptionLine(index=0, start_time=0.0, end_time=2.5, text="A"),
        CaptionLine(index=1, start_time=2.5, end_time=5.0, text="B"),
    ]


@pytest.fixture
def gapped_lines() -> List[CaptionLine]:
    """Two lines with a silent gap from 2.0s to 4.0s."""
    return [
        CaptionLine(index=1, start_time=0.0, end_time=2.0, text="first"),
        CaptionLine(index=2, start_time=4.0, end_time=6.0, text="second"),
    ]


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


def make_image_bytes(
    color: Tuple[int, int, int] = (200, 100, 50),
    size: Tuple[int, int] = (32, 32),
    fmt: str = "PNG",
    second_color: Optional[Tuple[int, int, int]] = None,
) -> bytes:
    """Encode a solid image, or a left/right split when second_color is set."""
    img = Image.new("RGB", size, color)
    if second_color is not None:
        width, height = size
        img.paste(second_color, (width // 2, 0, width, height))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_rgba_pixels(
    color: Tuple[int, int, int, int],
    width: int = 4,
    height: int = 4,
) -> bytes:
    """Raw row-major RGBA bytes for a solid width x height buffer."""
    return bytes(color) * (width * height)


@pytest.fixture
def cover_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def cover_file(tmp_path):
    path = tmp_path / "cover.png"
    path.write_bytes(make_image_bytes())
    return path


@pytest.fixture
def solid_decoded() -> DecodedImage:
    """A pre-decoded 10x10 opaque (200, 100, 50) image."""
    pixels = np.zeros((10, 10, 4), dtype=np.uint8)
    pixels[:, :] = (200, 100, 50, 255)
    return DecodedImage.from_array(pixels)
