"""Scene data model."""

from enum import Enum
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

from .asset import AttachedAsset
from .evaluation import Evaluation
from .image import ImagePayload
from .settings import GenerationSettings, SettingsOverride

PREVIOUS = "previous"

ReferenceMode = Union[Literal["previous"], int]


class GenerationState(str, Enum):
    """Generation state of a scene."""
    NOT_GENERATED = "not_generated"
    GENERATING = "generating"
    GENERATED = "generated"


class Scene(BaseModel):
    """Represents a single scene in the video."""

    id: str = Field(..., description="Unique scene identifier")
    title: str = Field(default="", description="Display title")
    prompt: str = Field(default="", description="Visual description")
    dialogue: Optional[str] = Field(None, description="Spoken line, if any")
    camera: Optional[str] = Field(None, description="Camera directive")
    duration: float = Field(default=8.0, description="Scene duration in seconds", gt=0)

    generation_state: GenerationState = Field(default=GenerationState.NOT_GENERATED)
    clip_locator: Optional[str] = Field(None, description="Where the clip lives")
    clip_revision: int = Field(default=0, description="Bumped every time a new clip is stored", ge=0)
    continuity_frame: Optional[ImagePayload] = Field(
        None, description="Still near the end of the clip, seeds the next scene"
    )
    settings_override: Optional[SettingsOverride] = None
    settings_used: Optional[GenerationSettings] = None
    reference_mode: Optional[ReferenceMode] = Field(
        None, description="'previous' or a 1-based reference slot"
    )
    attached_assets: List[AttachedAsset] = Field(default_factory=list)
    evaluation: Optional[Evaluation] = None

    class Config:
        """Pydantic config."""
        frozen = False

    @model_validator(mode="after")
    def _continuity_requires_clip(self) -> "Scene":
        if self.continuity_frame is not None and self.generation_state != GenerationState.GENERATED:
            raise ValueError(
                f"Scene {self.id}: continuity frame present but state is "
                f"{self.generation_state.value}"
            )
        return self

    @property
    def is_generated(self) -> bool:
        return self.generation_state == GenerationState.GENERATED
