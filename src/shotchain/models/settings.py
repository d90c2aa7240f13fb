"""Generation settings models."""

from typing import Optional
from pydantic import BaseModel, Field


class GenerationSettings(BaseModel):
    """Concrete settings used for exactly one generation call."""

    model: str = Field(..., description="Veo model name")
    aspect_ratio: str = Field(..., description="Output aspect ratio ('16:9' or '9:16')")
    resolution: str = Field(..., description="Output resolution ('720p' or '1080p')")
    is_looping: bool = Field(default=False, description="End on the start frame")


class SettingsOverride(BaseModel):
    """Per-scene override; aspect ratio is deliberately absent."""

    model: Optional[str] = None
    resolution: Optional[str] = None
    is_looping: Optional[bool] = None


class ProjectDefaults(BaseModel):
    """Project-level generation defaults."""

    model: Optional[str] = None
    resolution: Optional[str] = None
