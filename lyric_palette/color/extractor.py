"""Cover-to-palette extraction with latest-request-wins supersession.

WHY: The renderer asks for a palette whenever the cover changes. If the
cover changes again before the first decode finishes, the older result
must never overwrite the newer one, whichever finishes first. Decode
failures must not block rendering either: the caller falls back to a
fixed palette.

HOW: extract_colors() runs the full pipeline for one source:
load/decode (the only await) → sample → dominant_color → generate_scheme.
PaletteExtractor wraps it with a request-generation counter: extract()
takes a token synchronously at call time and threads it through the
await; on completion the result is applied only if the token is still
the latest. SchemeCache is a small explicit cache the caller owns,
keyed by image identity, holding whole Extraction results.

RULES:
- A token is taken when extract() is called, not when it is awaited
- Stale completions raise StaleExtractionError and never touch .current,
  whether the stale request succeeded or failed
- extract(..., fallback=True) turns ImageLoadError into DEFAULT_PALETTE
  (logged at WARNING); without fallback the error propagates
- An empty sample set is not an error: clustering returns FALLBACK_COLOR
- SchemeCache mutations are protected by a threading.Lock
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Coroutine, Optional, Union

from lyric_palette.color.clusterer import dominant_color
from lyric_palette.color.loader import (
    DecodedImage,
    ImageLoader,
    ImageLoadError,
    ImageSource,
    describe_source,
)
from lyric_palette.color.models import Palette, RGBColor
from lyric_palette.color.palette import PalettePolicy, default_palette, generate_scheme
from lyric_palette.color.sampler import sample
from lyric_palette.config import CLUSTER_COUNT, CLUSTER_ITERATIONS, SAMPLE_STRIDE

logger = logging.getLogger(__name__)

PolicyArg = Optional[Union[PalettePolicy, str]]


class StaleExtractionError(Exception):
    """Raised to the caller of a request that a newer request superseded."""

    def __init__(self, token: int, latest: int) -> None:
        self.token = token
        self.latest = latest
        super().__init__(
            "Extraction request {} superseded by request {}".format(token, latest)
        )


@dataclass(frozen=True)
class Extraction:
    """Everything one extraction produced."""

    dominant: RGBColor
    palette: Palette
    sample_count: int


async def extract_colors(
    source: ImageSource,
    policy: PolicyArg = None,
    k: int = CLUSTER_COUNT,
    iterations: int = CLUSTER_ITERATIONS,
    stride: int = SAMPLE_STRIDE,
    loader: Optional[ImageLoader] = None,
) -> Extraction:
    """Run load → sample → cluster → scheme for one image.

    Args:
        source: DecodedImage, encoded bytes, file path, or http(s) URL.
        policy: Palette policy; defaults to the configured one.
        loader: An entered ImageLoader to reuse. When omitted a private
            one is opened for this call.

    Raises:
        ImageLoadError: If the image cannot be fetched or decoded.
    """
    if loader is None:
        async with ImageLoader() as owned:
            image = await owned.load(source)
    else:
        image = await loader.load(source)

    samples = sample(image.pixels, image.width, image.height, stride=stride)
    if len(samples) == 0:
        logger.info("No usable pixels in %s; using fallback color", describe_source(source))

    dominant = dominant_color(samples, k=k, iterations=iterations)
    return Extraction(
        dominant=dominant,
        palette=generate_scheme(dominant, policy),
        sample_count=len(samples),
    )


async def extract_palette(source: ImageSource, **kwargs: Any) -> Palette:
    """Palette for one image; see extract_colors() for arguments."""
    extraction = await extract_colors(source, **kwargs)
    return extraction.palette


async def extract_palette_or_default(source: ImageSource, **kwargs: Any) -> Palette:
    """Like extract_palette(), but load failures yield the default palette."""
    try:
        return await extract_palette(source, **kwargs)
    except ImageLoadError as exc:
        logger.warning("Palette extraction failed (%s); using default palette", exc)
        return default_palette()


class PaletteExtractor:
    """Stateful extractor for one display slot (e.g. one video's background).

    WHY: A slot shows one palette at a time. Requests for that slot can
    overlap when the cover changes quickly; only the newest may win.

    HOW: A monotonically increasing generation counter. request() issues
    a token; extract() captures it before suspending and compares it with
    the counter after the decode completes.

    RULES:
    - current starts as DEFAULT_PALETTE and only changes on a latest result
    - current_source labels what produced current (None for the default)
    - current_extraction is the Extraction behind current, or None when
      current is the default palette
    - a superseded request raises StaleExtractionError however it ended,
      including when its load or sampling failed
    - extraction arguments (policy, k, iterations, stride) are fixed per
      extractor so every result for the slot is comparable
    """

    def __init__(
        self,
        policy: PolicyArg = None,
        k: int = CLUSTER_COUNT,
        iterations: int = CLUSTER_ITERATIONS,
        stride: int = SAMPLE_STRIDE,
        loader: Optional[ImageLoader] = None,
    ) -> None:
        self._options = {"policy": policy, "k": k, "iterations": iterations, "stride": stride}
        self._loader = loader
        self._generation = 0
        self.current: Palette = default_palette()
        self.current_source: Optional[str] = None
        self.current_extraction: Optional[Extraction] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_dominant(self) -> Optional[RGBColor]:
        """Dominant color behind current, or None for the default palette."""
        if self.current_extraction is None:
            return None
        return self.current_extraction.dominant

    def request(self) -> int:
        self._generation += 1
        return self._generation

    def is_latest(self, token: int) -> bool:
        return token == self._generation

    def extract(
        self,
        source: ImageSource,
        fallback: bool = False,
        label: Optional[str] = None,
    ) -> Coroutine[Any, Any, Palette]:
        """Issue a request now and return the coroutine that completes it.

        The token is taken immediately, so of two calls made in order the
        second always wins, regardless of which decode finishes first.

        Args:
            source: Anything ImageLoader.load() accepts.
            fallback: Apply DEFAULT_PALETTE instead of raising ImageLoadError.
            label: Name recorded as current_source (defaults to a
                description of source).

        Raises (when awaited):
            StaleExtractionError: A newer request was issued meanwhile.
            ImageLoadError: Loading failed and fallback is False.
            ValueError: A decoded buffer is smaller than its dimensions
                (fallback does not apply).
        """
        token = self.request()
        return self._complete(token, source, fallback, label or describe_source(source))

    async def _complete(
        self,
        token: int,
        source: ImageSource,
        fallback: bool,
        label: str,
    ) -> Palette:
        extraction: Optional[Extraction] = None
        try:
            extraction = await extract_colors(source, loader=self._loader, **self._options)
        except Exception as exc:
            if not self.is_latest(token):
                raise StaleExtractionError(token, self._generation) from exc
            if not (fallback and isinstance(exc, ImageLoadError)):
                raise
            logger.warning("Palette extraction failed (%s); using default palette", exc)

        if not self.is_latest(token):
            logger.debug("Discarding stale palette for %s (request %d < %d)",
                         label, token, self._generation)
            raise StaleExtractionError(token, self._generation)

        if extraction is None:
            self.current = default_palette()
            self.current_source = None
        else:
            self.current = extraction.palette
            self.current_source = label
        self.current_extraction = extraction
        return self.current

    def show(self, extraction: Extraction, label: str) -> None:
        """Apply an already known extraction (e.g. a cache hit) as a new request."""
        self.request()
        self.current = extraction.palette
        self.current_source = label
        self.current_extraction = extraction


def image_key(source: ImageSource) -> str:
    """Stable cache key for an image source.

    Paths and URLs key by their string form; raw bytes and pixel buffers
    by a SHA-1 of their content.
    """
    if isinstance(source, DecodedImage):
        return "pixels:" + hashlib.sha1(source.pixels.tobytes()).hexdigest()
    if isinstance(source, (bytes, bytearray)):
        return "bytes:" + hashlib.sha1(bytes(source)).hexdigest()
    if isinstance(source, Path):
        return "path:" + str(source)
    return ("url:" if str(source).lower().startswith(("http://", "https://")) else "path:") + source


class SchemeCache:
    """Bounded least-recently-used cache of extractions keyed by image identity.

    WHY: Re-rendering the same cover should not re-decode it. The owner
    (a renderer bridge, the HTTP app) decides when an image has changed
    and invalidates its entry.

    RULES:
    - get() returns None on a miss and refreshes recency on a hit
    - put() evicts the least recently used entry beyond max_entries
    - invalidate(key) drops one entry; invalidate() clears everything
    """

    def __init__(self, max_entries: int = 64) -> None:
        self._entries: "OrderedDict[str, Extraction]" = OrderedDict()
        self._lock = threading.Lock()
        self.max_entries = max_entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Optional[Extraction]:
        with self._lock:
            extraction = self._entries.get(key)
            if extraction is not None:
                self._entries.move_to_end(key)
            return extraction

    def put(self, key: str, extraction: Extraction) -> None:
        with self._lock:
            self._entries[key] = extraction
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted palette for %s", evicted)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
