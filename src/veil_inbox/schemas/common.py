"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# Column widths of the stored client metadata.
CLIENT_FIELD_LIMITS = {
    "timezone": 64,
    "language": 35,
    "screen_resolution": 20,
    "viewport_size": 20,
    "available_screen": 20,
    "connection_type": 20,
}
MAX_COLOR_DEPTH = 64
MAX_PIXEL_RATIO = 10.0


class ClientData(BaseModel):
    """Capabilities reported by the sender's browser.

    Values are best-effort: oversized strings are cut to their column width and
    implausible numbers are dropped, so odd client data never rejects a request.
    """

    timezone: str | None = None
    language: str | None = None
    screen_resolution: str | None = Field(None, alias="screenResolution")
    viewport_size: str | None = Field(None, alias="viewportSize")
    available_screen: str | None = Field(None, alias="availableScreen")
    color_depth: int | None = Field(None, alias="colorDepth")
    pixel_ratio: float | None = Field(None, alias="pixelRatio")
    touch_support: bool | None = Field(None, alias="touchSupport")
    connection_type: str | None = Field(None, alias="connectionType")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator(*CLIENT_FIELD_LIMITS)
    @classmethod
    def truncate_text(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is None:
            return v
        return v[: CLIENT_FIELD_LIMITS[info.field_name]] or None

    @field_validator("color_depth")
    @classmethod
    def drop_unlikely_color_depth(cls, v: int | None) -> int | None:
        if v is None or 0 <= v <= MAX_COLOR_DEPTH:
            return v
        return None

    @field_validator("pixel_ratio")
    @classmethod
    def drop_unlikely_pixel_ratio(cls, v: float | None) -> float | None:
        if v is None or 0 < v <= MAX_PIXEL_RATIO:
            return v
        return None


class SuccessResponse(BaseModel):
    """Generic acknowledgement body."""

    success: bool = True
    message: str | None = None
