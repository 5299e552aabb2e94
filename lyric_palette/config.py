"""Configuration constants, fallback colors, and .env loading.

WHY: Sampling stride, cluster count, palette policy and the fallback
colors are tuning knobs that renderers want to adjust without touching
algorithm code. Keeping them as plain module-level data makes them easy
to find and override.

HOW: python-dotenv loads the .env file on import. Tunables are read from
the environment with defaults tuned for 200px covers. Fixed data
(fallback color, default palette, image suffixes) are plain tuples and
sets. load_policy() validates the palette policy name.

RULES:
- Every tunable can be overridden via a LYRIC_PALETTE_* environment variable
- FALLBACK_COLOR is what clustering returns for an empty sample set
- DEFAULT_PALETTE is what renderers show when extraction fails
- configure_logging() is called once by the CLI and the API server
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Color fallbacks
# ---------------------------------------------------------------------------

FALLBACK_COLOR: tuple[int, int, int] = (255, 200, 200)
"""Dominant color used when an image yields no usable samples."""

DEFAULT_PALETTE: tuple[tuple[int, int, int], ...] = (
    (220, 180, 200),
    (200, 160, 180),
    (240, 200, 220),
)
"""Background palette shown until (or instead of) a successful extraction."""

# ---------------------------------------------------------------------------
# Pixel sampling and clustering
# ---------------------------------------------------------------------------

SAMPLE_STRIDE = int(os.getenv("LYRIC_PALETTE_SAMPLE_STRIDE", "3"))
ALPHA_THRESHOLD = 128
MIN_BRIGHTNESS = 10
MAX_BRIGHTNESS = 250

CLUSTER_COUNT = int(os.getenv("LYRIC_PALETTE_CLUSTERS", "5"))
CLUSTER_ITERATIONS = int(os.getenv("LYRIC_PALETTE_ITERATIONS", "10"))

# Images are downscaled to a DECODE_SIZE x DECODE_SIZE square before sampling
DECODE_SIZE = int(os.getenv("LYRIC_PALETTE_DECODE_SIZE", "200"))

SUPPORTED_IMAGE_FORMATS: set[str] = {
    ".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tif", ".tiff",
}
"""Image file extensions accepted for cover extraction (lowercase, with dot)."""

FETCH_TIMEOUT_S = float(os.getenv("LYRIC_PALETTE_FETCH_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# Palette policy
# ---------------------------------------------------------------------------

SUPPORTED_POLICIES: set[str] = {"lightness", "hue"}
PALETTE_POLICY = os.getenv("LYRIC_PALETTE_POLICY", "lightness").strip().lower()

# ---------------------------------------------------------------------------
# Captions and rendering
# ---------------------------------------------------------------------------

STALL_ON_BAD_TIME = (
    os.getenv("LYRIC_PALETTE_STALL_ON_BAD_TIME", "true").strip().lower() == "true"
)
DEFAULT_FPS = int(os.getenv("LYRIC_PALETTE_FPS", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def load_policy(name: str | None = None) -> str:
    """Return a validated palette policy name.

    RULES:
    - None means PALETTE_POLICY from the environment
    - Matching is case-insensitive
    - Raises ValueError for names outside SUPPORTED_POLICIES
    """
    policy = (name if name is not None else PALETTE_POLICY).strip().lower()
    if policy not in SUPPORTED_POLICIES:
        raise ValueError(
            "Unknown palette policy '{}'. Available: {}".format(
                policy, ", ".join(sorted(SUPPORTED_POLICIES))
            )
        )
    return policy


def configure_logging(level: str | None = None) -> None:
    """Apply LOG_LEVEL (or an explicit level) to the root logger."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
