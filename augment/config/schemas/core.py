"""Core schemas: tree search bounds, preview surface, plugin identity."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TreeConfig(BaseModel):
    max_depth: int = 100

    model_config = ConfigDict(extra="forbid")

    @field_validator("max_depth")
    @classmethod
    def _depth_positive(cls, v: int) -> int:  # noqa: D401
        if v < 1:
            raise ValueError("max_depth must be >= 1")
        return v


class PreviewConfig(BaseModel):
    # Full-size resource edge requested from the host CDN.
    size: int = Field(2048, ge=16, le=4096)
    banner_height: int = Field(819, ge=1)
    animated: bool = True
    autoplay: bool = True

    model_config = ConfigDict(extra="forbid")


class PluginConfig(BaseModel):
    style_id: str = "picture-link"
    class_name: str = "picture-link"
    open_in_browser_default: bool = False

    model_config = ConfigDict(extra="forbid")
