"""Async image loading and decoding into an RGBA pixel buffer.

WHY: Cover art arrives as a URL, a file path, or raw bytes. Clustering
needs a small, fixed-size RGBA buffer. Fetching and decoding are the only
slow, I/O-bound steps in color extraction, so they are the one place the
pipeline suspends.

HOW: ImageLoader is an async context manager wrapping httpx.AsyncClient
for http(s) sources. File reads and Pillow decoding run in a worker
thread via asyncio.to_thread so the event loop stays free. Every decoded
image is converted to RGBA and resized to DECODE_SIZE x DECODE_SIZE,
a square small enough that sampling stays cheap.

RULES:
- Use as: async with ImageLoader() as loader: image = await loader.load(src)
- load() accepts a DecodedImage (returned as-is), bytes, a path, or a URL
- Every fetch/read/decode failure surfaces as ImageLoadError
- Non-2xx HTTP responses are failures
"""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx
import numpy as np
from PIL import Image

from lyric_palette.config import DECODE_SIZE, FETCH_TIMEOUT_S

logger = logging.getLogger(__name__)


class ImageLoadError(Exception):
    """Raised when an image cannot be fetched, read, or decoded.

    RULES:
    - source identifies what was being loaded (URL, path, or "<bytes>")
    - The original exception is chained as __cause__
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__("Failed to load image {}: {}".format(source, message))


@dataclass(frozen=True)
class DecodedImage:
    """An RGBA pixel buffer of shape (height, width, 4), dtype uint8."""

    pixels: np.ndarray
    width: int
    height: int

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> DecodedImage:
        height, width = pixels.shape[:2]
        return cls(pixels=pixels, width=width, height=height)


ImageSource = Union[DecodedImage, bytes, bytearray, str, Path]


def is_url(source: object) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def describe_source(source: ImageSource) -> str:
    if isinstance(source, DecodedImage):
        return "<pixels {}x{}>".format(source.width, source.height)
    if isinstance(source, (bytes, bytearray)):
        return "<bytes>"
    return str(source)


def decode_image(data: bytes, size: Optional[int] = None) -> DecodedImage:
    """Decode encoded image bytes to a square RGBA buffer (blocking).

    Raises:
        ImageLoadError: If Pillow cannot identify or decode the data.
    """
    size = size or DECODE_SIZE
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgba = img.convert("RGBA").resize((size, size), Image.Resampling.BILINEAR)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageLoadError("<bytes>", str(exc)) from exc
    return DecodedImage.from_array(np.asarray(rgba, dtype=np.uint8))


class ImageLoader:
    """Async loader for cover images.

    WHY: Callers (CLI, HTTP API, renderer bridges) should not care whether
    a cover is remote or local. One object owns the HTTP connection pool
    and the decode settings.

    RULES:
    - fetch() requires the async context manager (it needs the pool)
    - timeout defaults to FETCH_TIMEOUT_S; size to DECODE_SIZE
    - transport may be injected (httpx.MockTransport in tests)
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        size: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout if timeout is not None else FETCH_TIMEOUT_S
        self._size = size or DECODE_SIZE
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> ImageLoader:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "ImageLoader must be used as an async context manager: "
                "async with ImageLoader() as loader: ..."
            )
        return self._client

    async def fetch(self, url: str) -> bytes:
        client = self._ensure_client()
        try:
            resp = await client.get(url)
        except httpx.HTTPError as exc:
            raise ImageLoadError(url, str(exc)) from exc

        if resp.status_code != 200:
            raise ImageLoadError(url, "HTTP {}".format(resp.status_code))
        return resp.content

    async def read(self, path: Union[str, Path]) -> bytes:
        try:
            return await asyncio.to_thread(Path(path).read_bytes)
        except OSError as exc:
            raise ImageLoadError(str(path), str(exc)) from exc

    async def decode(self, data: bytes, source: str = "<bytes>") -> DecodedImage:
        try:
            return await asyncio.to_thread(decode_image, data, self._size)
        except ImageLoadError as exc:
            raise ImageLoadError(source, exc.message) from exc.__cause__

    async def load(self, source: ImageSource) -> DecodedImage:
        """Resolve any supported source to a decoded RGBA buffer."""
        if isinstance(source, DecodedImage):
            return source

        label = describe_source(source)
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        elif is_url(source):
            data = await self.fetch(source)
        else:
            data = await self.read(source)

        logger.debug("Decoding %d bytes from %s", len(data), label)
        return await self.decode(data, source=label)
