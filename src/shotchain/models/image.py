"""Image payload model."""

import base64
from pydantic import BaseModel, Field


class ImagePayload(BaseModel):
    """An opaque still image carried as base64 so it survives YAML/JSON round trips."""

    mime_type: str = Field(default="image/png", description="MIME type of the image")
    data: str = Field(..., description="Base64-encoded image bytes")

    class Config:
        """Pydantic config."""
        frozen = True

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str = "image/png") -> "ImagePayload":
        """Wrap raw image bytes."""
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))

    def to_bytes(self) -> bytes:
        """Decode the payload back to raw bytes."""
        return base64.b64decode(self.data)
