"""Pydantic request/response models for the HTTP API.

WHY: Renderer bridges written in other languages talk to the core over
HTTP. Typed schemas validate their requests and document the responses
in the generated OpenAPI page.

HOW: One request model per JSON-body endpoint, one response model per
result shape. Field descriptions feed /docs.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Caption fields use the renderer's camelCase names (startTime, endTime)
- A NaN caption index is reported as null
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Captions
# ---------------------------------------------------------------------------


class CaptionModel(BaseModel):
    """One parsed caption line."""

    index: Optional[Union[int, float]] = Field(
        default=None,
        description="Source block number; null when the index line was not numeric.",
    )
    startTime: float = Field(description="Display start in seconds.")
    endTime: float = Field(description="Display end in seconds (inclusive).")
    text: str = Field(description="Caption text; multiple lines joined with '\\n'.")


class ParseCaptionsRequest(BaseModel):
    """Raw SRT content to parse."""

    content: str = Field(description="Full SRT file text.")
    strict: Optional[bool] = Field(
        default=None,
        description=(
            "Drop blocks with a malformed time line instead of stalling. "
            "Omit to use LYRIC_PALETTE_STALL_ON_BAD_TIME."
        ),
    )


class ParseCaptionsResponse(BaseModel):
    lines: List[CaptionModel] = Field(description="Parsed captions in input order.")


class QueryCaptionsRequest(BaseModel):
    """A point-in-time lookup against an already parsed caption list."""

    lines: List[CaptionModel] = Field(description="Captions as returned by /captions/parse.")
    time: float = Field(description="Playback time in seconds.")


class QueryCaptionsResponse(BaseModel):
    current: Optional[CaptionModel] = Field(
        default=None, description="Active caption, or null in a gap."
    )
    next: Optional[CaptionModel] = Field(
        default=None, description="First caption starting after time, or null."
    )
    current_index: int = Field(description="Position of current, or -1.")
    last_shown_index: int = Field(
        description="Position of the most recently started caption, or -1."
    )


# ---------------------------------------------------------------------------
# Palettes
# ---------------------------------------------------------------------------


class RGBModel(BaseModel):
    r: int = Field(ge=0, le=255, description="Red channel.")
    g: int = Field(ge=0, le=255, description="Green channel.")
    b: int = Field(ge=0, le=255, description="Blue channel.")


class SchemeRequest(BaseModel):
    """Base color for a palette, for callers that already have one."""

    color: RGBModel = Field(description="Dominant color.")
    policy: Optional[str] = Field(
        default=None,
        description="Palette policy: 'lightness' or 'hue'. Defaults to server config.",
    )


class PaletteResponse(BaseModel):
    """A 3-color palette plus the CSS gradient built from it."""

    space: str = Field(description="'rgb' or 'hsl'.")
    css: List[str] = Field(description="The three colors as CSS color strings.")
    gradient: str = Field(description="CSS linear-gradient background.")
    dominant: Optional[RGBModel] = Field(
        default=None, description="Dominant color extracted from the image, if any."
    )
    cached: bool = Field(default=False, description="True when served from the scheme cache.")
    fallback: bool = Field(
        default=False, description="True when the default palette was substituted."
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "space": "rgb",
                "css": ["rgb(206, 116, 71)", "rgb(200, 100, 50)", "rgb(211, 131, 91)"],
                "gradient": "linear-gradient(135deg, rgb(206, 116, 71), "
                            "rgb(200, 100, 50), rgb(211, 131, 91))",
                "dominant": {"r": 200, "g": 100, "b": 50},
                "cached": False,
                "fallback": False,
            }
        ]
    }}


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
