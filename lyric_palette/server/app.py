"""FastAPI application exposing caption lookups and palette extraction.

WHY: Renderers that are not written in Python (browser compositions,
video tools) still want the same caption timing and cover colors. A
small HTTP API lets them call the core per render instead of
re-implementing it.

HOW: One FastAPI app with endpoints grouped by tag:
  captions — POST /captions/parse, POST /captions/query
  palettes — POST /palettes (image upload), POST /palettes/scheme,
             GET /palettes/current, DELETE /palettes/cache
  health   — GET /health
The app owns one PaletteExtractor (the "current background" slot, where
the newest upload wins) and one SchemeCache keyed by image content.

RULES:
- Caption endpoints never fail on malformed SRT; they return what parsed
- Unsupported image extensions are rejected with 400
- Undecodable images are 422, unless fallback=true asks for the default
- /palettes uses the configured palette policy; /palettes/scheme may
  choose one per request
- An upload superseded by a newer one before it finished is 409
- Error responses use the ErrorResponse schema
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from lyric_palette import __version__
from lyric_palette.captions.models import CaptionLine
from lyric_palette.captions.parser import parse_captions
from lyric_palette.captions.query import (
    current_index,
    current_line,
    last_shown_index,
    next_line,
)
from lyric_palette.color.extractor import (
    PaletteExtractor,
    SchemeCache,
    StaleExtractionError,
    image_key,
)
from lyric_palette.color.loader import ImageLoadError
from lyric_palette.color.models import Palette, RGBColor
from lyric_palette.color.palette import generate_scheme
from lyric_palette.config import SUPPORTED_IMAGE_FORMATS, configure_logging
from lyric_palette.render import background_gradient, caption_json
from lyric_palette.server.models import (
    CaptionModel,
    ErrorResponse,
    HealthResponse,
    PaletteResponse,
    ParseCaptionsRequest,
    ParseCaptionsResponse,
    QueryCaptionsRequest,
    QueryCaptionsResponse,
    RGBModel,
    SchemeRequest,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and shared state
# ---------------------------------------------------------------------------

extractor = PaletteExtractor()
scheme_cache = SchemeCache()

app = FastAPI(
    title="Lyric Palette API",
    description=(
        "Caption timing lookups and cover-art palette extraction for "
        "music-video renderers. Parse SRT text, query the active lyric at "
        "a playback time, and turn a cover image into a 3-color background."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_model(line: CaptionLine) -> CaptionModel:
    return CaptionModel(**caption_json(line))


def _from_model(model: CaptionModel) -> CaptionLine:
    return CaptionLine(
        index=model.index if model.index is not None else float("nan"),
        start_time=model.startTime,
        end_time=model.endTime,
        text=model.text,
    )


def _palette_response(
    palette: Palette,
    dominant: Optional[RGBColor] = None,
    cached: bool = False,
    fallback: bool = False,
) -> PaletteResponse:
    return PaletteResponse(
        space=palette.space,
        css=palette.css_colors(),
        gradient=background_gradient(palette),
        dominant=RGBModel(**dominant.to_dict()) if dominant else None,
        cached=cached,
        fallback=fallback,
    )


def _validate_image_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_IMAGE_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported image type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_IMAGE_FORMATS))
            ),
        )


# ---------------------------------------------------------------------------
# Endpoints: Captions
# ---------------------------------------------------------------------------


@app.post(
    "/captions/parse",
    response_model=ParseCaptionsResponse,
    tags=["captions"],
    summary="Parse SRT text",
    description=(
        "Parse SubRip caption text into timed lines. Malformed blocks are "
        "dropped rather than failing the request."
    ),
)
async def parse_captions_endpoint(body: ParseCaptionsRequest) -> ParseCaptionsResponse:
    stall = None if body.strict is None else not body.strict
    lines = parse_captions(body.content, stall_on_bad_time=stall)
    return ParseCaptionsResponse(lines=[_to_model(line) for line in lines])


@app.post(
    "/captions/query",
    response_model=QueryCaptionsResponse,
    tags=["captions"],
    summary="Look up captions at a playback time",
    description=(
        "Returns the active caption, the next caption, the active position "
        "and the last-shown position for the given time. Never fails for a "
        "time with no active caption."
    ),
)
async def query_captions_endpoint(body: QueryCaptionsRequest) -> QueryCaptionsResponse:
    lines = [_from_model(model) for model in body.lines]
    active = current_line(lines, body.time)
    upcoming = next_line(lines, body.time)
    return QueryCaptionsResponse(
        current=_to_model(active) if active else None,
        next=_to_model(upcoming) if upcoming else None,
        current_index=current_index(lines, body.time),
        last_shown_index=last_shown_index(lines, body.time),
    )


# ---------------------------------------------------------------------------
# Endpoints: Palettes
# ---------------------------------------------------------------------------


@app.post(
    "/palettes",
    response_model=PaletteResponse,
    tags=["palettes"],
    summary="Extract a palette from a cover image",
    description=(
        "Upload an image. The dominant color is found by k-means over "
        "sampled pixels and expanded into a 3-color palette, which also "
        "becomes the current background unless a newer upload overtakes it."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported image type or policy"},
        409: {"model": ErrorResponse, "description": "Superseded by a newer upload"},
        422: {"model": ErrorResponse, "description": "Image could not be decoded"},
    },
)
async def create_palette(
    file: Annotated[UploadFile, File(description="Cover image file.")],
    fallback: Annotated[
        bool,
        Query(description="Return the default palette instead of 422 on decode failure."),
    ] = False,
) -> PaletteResponse:
    filename = Path(file.filename or "upload").name
    _validate_image_extension(filename)

    data = await file.read()
    key = image_key(data)

    cached = scheme_cache.get(key)
    if cached is not None:
        extractor.show(cached, label=filename)
        return _palette_response(cached.palette, dominant=cached.dominant, cached=True)

    try:
        palette = await extractor.extract(data, fallback=fallback, label=filename)
    except StaleExtractionError as exc:
        logger.info("Upload %s superseded before it finished: %s", filename, exc)
        raise HTTPException(status_code=409, detail=str(exc))
    except ImageLoadError as exc:
        logger.warning("Rejected upload %s: %s", filename, exc)
        raise HTTPException(status_code=422, detail=str(exc))

    extraction = extractor.current_extraction
    if extraction is None:
        return _palette_response(palette, fallback=True)

    scheme_cache.put(key, extraction)
    return _palette_response(palette, dominant=extraction.dominant)


@app.post(
    "/palettes/scheme",
    response_model=PaletteResponse,
    tags=["palettes"],
    summary="Generate a palette from a known base color",
    responses={400: {"model": ErrorResponse, "description": "Unknown policy"}},
)
async def create_scheme(body: SchemeRequest) -> PaletteResponse:
    base = RGBColor(body.color.r, body.color.g, body.color.b)
    try:
        palette = generate_scheme(base, body.policy)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _palette_response(palette, dominant=base)


@app.get(
    "/palettes/current",
    response_model=PaletteResponse,
    tags=["palettes"],
    summary="Current background palette",
    description="The palette from the latest completed upload, or the default palette.",
)
async def get_current_palette() -> PaletteResponse:
    return _palette_response(
        extractor.current,
        dominant=extractor.current_dominant,
        fallback=extractor.current_extraction is None,
    )


@app.delete(
    "/palettes/cache",
    status_code=204,
    tags=["palettes"],
    summary="Clear the palette cache",
)
async def clear_palette_cache() -> Response:
    scheme_cache.invalidate()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api() -> None:
    """Entry point for the lyric-palette-api console script."""
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
