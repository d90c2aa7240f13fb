"""Asset models."""

from enum import Enum
from pydantic import BaseModel, Field


class AssetCategory(str, Enum):
    """Category of a library asset."""
    CHARACTER = "character"
    PROP = "prop"
    LOCATION = "location"


class AssetRole(str, Enum):
    """Role an asset plays when attached to a scene."""
    SUBJECT = "subject"
    BACKDROP = "backdrop"
    PROP = "prop"


class Asset(BaseModel):
    """A reference image owned by the asset library."""

    id: str = Field(..., description="Asset identifier")
    project_id: str = Field(..., description="Owning project")
    category: AssetCategory = Field(default=AssetCategory.CHARACTER)
    image_locator: str = Field(..., description="Path, URL or gs:// URI of the image")
    name: str = Field(default="", description="Display name")


class AttachedAsset(BaseModel):
    """Link from a scene to an asset."""

    asset_id: str
    role: AssetRole = AssetRole.SUBJECT
    order: int = Field(default=0, description="Priority; lower comes first")
