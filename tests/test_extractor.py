"""Tests for the extraction pipeline, supersession, and the scheme cache.

WHY: Latest-request-wins is the one piece of concurrency in the color
pipeline. If an older, slower decode can overwrite a newer palette, the
background flickers back to the previous cover. These tests force every
completion order explicitly.

HOW: A gated fake loader lets each test decide when each request's
"decode" finishes. Scenarios run inside asyncio.run() from sync tests.
  - TestExtractColors: the one-shot pipeline on real encoded images
  - TestSupersession: completion orders and token timing
  - TestFallback: load failures with and without fallback
  - TestImageKey / TestSchemeCache: the caller-owned cache

RULES:
- Every PaletteExtractor is created per test (no shared state)
- asyncio primitives are created inside the running loop
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path

import numpy as np
import pytest

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
from lyric_palette.color.loader import DecodedImage, ImageLoadError
from lyric_palette.color.models import RGBColor
from lyric_palette.color.palette import default_palette, lightness_scheme
from lyric_palette.config import FALLBACK_COLOR
from conftest import make_image_bytes


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _solid(color, alpha=255) -> DecodedImage:
    pixels = np.zeros((6, 6, 4), dtype=np.uint8)
    pixels[:, :] = (*color, alpha)
    return DecodedImage.from_array(pixels)


OLD_COLOR = (200, 100, 50)
NEW_COLOR = (30, 60, 200)


def _extraction(color) -> Extraction:
    dominant = RGBColor(*color)
    return Extraction(dominant=dominant, palette=lightness_scheme(dominant), sample_count=36)


class _GatedLoader:
    """Fake ImageLoader whose load() waits until the test releases it."""

    def __init__(self, images):
        self._images = images
        self._gates = {}

    def _gate(self, name) -> asyncio.Event:
        if name not in self._gates:
            self._gates[name] = asyncio.Event()
        return self._gates[name]

    def release(self, name) -> None:
        self._gate(name).set()

    async def load(self, source):
        await self._gate(source).wait()
        image = self._images[source]
        if isinstance(image, Exception):
            raise image
        return image


def _make_extractor(images) -> tuple:
    loader = _GatedLoader(images)
    return PaletteExtractor(policy="lightness", loader=loader), loader


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# TestExtractColors
# ---------------------------------------------------------------------------


class TestExtractColors:
    """extract_colors() runs load → sample → cluster → scheme."""

    def test_solid_cover(self, cover_bytes):
        extraction = asyncio.run(extract_colors(cover_bytes, policy="lightness"))
        assert extraction.dominant == RGBColor(*OLD_COLOR)
        assert extraction.palette == lightness_scheme(RGBColor(*OLD_COLOR))
        assert extraction.sample_count > 0

    def test_from_file(self, cover_file):
        palette = asyncio.run(extract_palette(cover_file, policy="lightness"))
        assert palette.colors[1] == RGBColor(*OLD_COLOR)

    def test_transparent_image_uses_fallback_color(self):
        extraction = asyncio.run(extract_colors(_solid(OLD_COLOR, alpha=0), policy="lightness"))
        assert extraction.sample_count == 0
        assert extraction.dominant == RGBColor(*FALLBACK_COLOR)

    def test_hue_policy(self, cover_bytes):
        extraction = asyncio.run(extract_colors(cover_bytes, policy="hue"))
        assert extraction.palette.space == "hsl"

    def test_bad_bytes_raise(self):
        with pytest.raises(ImageLoadError):
            asyncio.run(extract_colors(b"not an image"))

    def test_or_default_swallows_load_errors(self):
        palette = asyncio.run(extract_palette_or_default(b"not an image"))
        assert palette == default_palette()

    def test_or_default_passes_success_through(self, cover_bytes):
        palette = asyncio.run(extract_palette_or_default(cover_bytes, policy="lightness"))
        assert palette.colors[1] == RGBColor(*OLD_COLOR)


# ---------------------------------------------------------------------------
# TestSupersession
# ---------------------------------------------------------------------------


class TestSupersession:
    """Only the most recently issued request may update current."""

    def test_starts_with_default_palette(self):
        extractor = PaletteExtractor()
        assert extractor.current == default_palette()
        assert extractor.current_source is None
        assert extractor.generation == 0

    def test_token_taken_at_call_time(self):
        extractor, _ = _make_extractor({})
        pending = extractor.extract("old")
        assert extractor.generation == 1
        pending.close()

    def test_newer_finishing_first_wins(self):
        extractor, loader = _make_extractor({"old": _solid(OLD_COLOR), "new": _solid(NEW_COLOR)})

        async def scenario():
            first = asyncio.ensure_future(extractor.extract("old"))
            second = asyncio.ensure_future(extractor.extract("new"))
            await _settle()
            loader.release("new")
            new_palette = await second
            loader.release("old")
            with pytest.raises(StaleExtractionError):
                await first
            return new_palette

        new_palette = asyncio.run(scenario())
        assert extractor.current == new_palette
        assert extractor.current_dominant == RGBColor(*NEW_COLOR)
        assert extractor.current_source == "new"

    def test_older_finishing_last_is_discarded(self):
        extractor, loader = _make_extractor({"old": _solid(OLD_COLOR), "new": _solid(NEW_COLOR)})

        async def scenario():
            first = asyncio.ensure_future(extractor.extract("old"))
            second = asyncio.ensure_future(extractor.extract("new"))
            await _settle()
            loader.release("old")
            with pytest.raises(StaleExtractionError) as exc_info:
                await first
            assert (exc_info.value.token, exc_info.value.latest) == (1, 2)
            # the stale result did not leak into current
            assert extractor.current == default_palette()
            loader.release("new")
            await second

        asyncio.run(scenario())
        assert extractor.current_dominant == RGBColor(*NEW_COLOR)

    def test_sequential_requests_both_apply(self):
        extractor, loader = _make_extractor({"old": _solid(OLD_COLOR), "new": _solid(NEW_COLOR)})

        async def scenario():
            loader.release("old")
            loader.release("new")
            await extractor.extract("old")
            assert extractor.current_dominant == RGBColor(*OLD_COLOR)
            await extractor.extract("new")

        asyncio.run(scenario())
        assert extractor.current_dominant == RGBColor(*NEW_COLOR)

    def test_show_supersedes_in_flight_request(self):
        extractor, loader = _make_extractor({"old": _solid(OLD_COLOR)})
        cached = _extraction(NEW_COLOR)

        async def scenario():
            pending = asyncio.ensure_future(extractor.extract("old"))
            await _settle()
            extractor.show(cached, label="cache")
            loader.release("old")
            with pytest.raises(StaleExtractionError):
                await pending

        asyncio.run(scenario())
        assert extractor.current == cached.palette
        assert extractor.current_extraction is cached
        assert extractor.current_dominant == RGBColor(*NEW_COLOR)
        assert extractor.current_source == "cache"

    def test_is_latest(self):
        extractor = PaletteExtractor()
        first = extractor.request()
        second = extractor.request()
        assert not extractor.is_latest(first)
        assert extractor.is_latest(second)


# ---------------------------------------------------------------------------
# TestFallback
# ---------------------------------------------------------------------------


class TestFallback:
    """Load failures become DEFAULT_PALETTE only when asked to."""

    def _failing(self):
        return _make_extractor({"bad": ImageLoadError("bad", "corrupt")})

    def test_error_propagates_without_fallback(self):
        extractor, loader = self._failing()

        async def scenario():
            loader.release("bad")
            await extractor.extract("bad")

        with pytest.raises(ImageLoadError):
            asyncio.run(scenario())
        assert extractor.current == default_palette()

    def test_fallback_applies_default(self):
        extractor, loader = _make_extractor({
            "good": _solid(OLD_COLOR),
            "bad": ImageLoadError("bad", "corrupt"),
        })

        async def scenario():
            loader.release("good")
            loader.release("bad")
            await extractor.extract("good")
            return await extractor.extract("bad", fallback=True)

        palette = asyncio.run(scenario())
        assert palette == default_palette()
        assert extractor.current == default_palette()
        assert extractor.current_dominant is None
        assert extractor.current_source is None

    def test_stale_failure_reports_stale(self):
        extractor, loader = _make_extractor({
            "bad": ImageLoadError("bad", "corrupt"),
            "new": _solid(NEW_COLOR),
        })

        async def scenario():
            first = asyncio.ensure_future(extractor.extract("bad"))
            second = asyncio.ensure_future(extractor.extract("new"))
            await _settle()
            loader.release("bad")
            with pytest.raises(StaleExtractionError):
                await first
            loader.release("new")
            await second

        asyncio.run(scenario())
        assert extractor.current_dominant == RGBColor(*NEW_COLOR)

    def test_stale_sampling_error_reports_stale(self):
        short = DecodedImage(pixels=np.zeros(4, dtype=np.uint8), width=10, height=10)
        extractor, loader = _make_extractor({"short": short, "new": _solid(NEW_COLOR)})

        async def scenario():
            first = asyncio.ensure_future(extractor.extract("short", fallback=True))
            second = asyncio.ensure_future(extractor.extract("new"))
            await _settle()
            loader.release("short")
            with pytest.raises(StaleExtractionError) as exc_info:
                await first
            assert isinstance(exc_info.value.__cause__, ValueError)
            loader.release("new")
            await second

        asyncio.run(scenario())
        assert extractor.current_dominant == RGBColor(*NEW_COLOR)

    def test_latest_sampling_error_propagates_even_with_fallback(self):
        short = DecodedImage(pixels=np.zeros(4, dtype=np.uint8), width=10, height=10)
        extractor, loader = _make_extractor({"short": short})

        async def scenario():
            loader.release("short")
            await extractor.extract("short", fallback=True)

        with pytest.raises(ValueError, match="Pixel buffer holds 4 bytes"):
            asyncio.run(scenario())
        assert extractor.current == default_palette()
        assert extractor.current_extraction is None


# ---------------------------------------------------------------------------
# TestImageKey
# ---------------------------------------------------------------------------


class TestImageKey:
    def test_bytes_keyed_by_content(self):
        data = make_image_bytes()
        assert image_key(data) == image_key(bytes(data))
        assert image_key(data) != image_key(make_image_bytes((1, 2, 3)))

    def test_paths_and_urls(self):
        assert image_key(Path("/covers/a.png")) == "path:/covers/a.png"
        assert image_key("/covers/a.png") == "path:/covers/a.png"
        assert image_key("https://cdn.example.com/a.png") == "url:https://cdn.example.com/a.png"

    def test_decoded_pixels(self):
        assert image_key(_solid(OLD_COLOR)) == image_key(_solid(OLD_COLOR))
        assert image_key(_solid(OLD_COLOR)).startswith("pixels:")


# ---------------------------------------------------------------------------
# TestSchemeCache
# ---------------------------------------------------------------------------


class TestSchemeCache:
    """Bounded LRU keyed by image identity."""

    def test_miss_returns_none(self):
        assert SchemeCache().get("x") is None

    def test_put_then_get(self):
        cache = SchemeCache()
        extraction = _extraction(OLD_COLOR)
        cache.put("x", extraction)
        assert cache.get("x") is extraction
        assert "x" in cache
        assert len(cache) == 1

    def test_evicts_least_recently_used(self):
        cache = SchemeCache(max_entries=2)
        cache.put("a", _extraction(OLD_COLOR))
        cache.put("b", _extraction(OLD_COLOR))
        cache.get("a")
        cache.put("c", _extraction(OLD_COLOR))
        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache

    def test_invalidate_one(self):
        cache = SchemeCache()
        cache.put("a", _extraction(OLD_COLOR))
        cache.put("b", _extraction(OLD_COLOR))
        cache.invalidate("a")
        assert "a" not in cache
        assert "b" in cache

    def test_invalidate_unknown_key_is_noop(self):
        cache = SchemeCache()
        cache.invalidate("missing")
        assert len(cache) == 0

    def test_invalidate_all(self):
        cache = SchemeCache()
        cache.put("a", _extraction(OLD_COLOR))
        cache.put("b", _extraction(OLD_COLOR))
        cache.invalidate()
        assert len(cache) == 0

    def test_concurrent_puts_respect_bound(self):
        cache = SchemeCache(max_entries=10)

        def worker(prefix):
            for i in range(50):
                cache.put("{}-{}".format(prefix, i), _extraction(OLD_COLOR))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 10
