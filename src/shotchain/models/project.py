"""Project model."""

import logging
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field
import yaml

from .scene import Scene
from .settings import ProjectDefaults

logger = logging.getLogger(__name__)

ASPECT_RATIOS = ("16:9", "9:16")


class Project(BaseModel):
    """An ordered collection of scenes sharing one aspect ratio."""

    id: str = Field(..., description="Project identifier")
    title: str = Field(default="", description="Project title")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes in play order")
    aspect_ratio: str = Field(default="16:9", description="Output aspect ratio")
    defaults: ProjectDefaults = Field(default_factory=ProjectDefaults)
    reference_images: List[str] = Field(
        default_factory=list, description="Generic reference-image pool (locators)"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def index_of(self, scene_id: str) -> int:
        """Return the ordinal position of a scene.

        Raises:
            SceneNotFoundError: If no scene has the given id.
        """
        for i, scene in enumerate(self.scenes):
            if scene.id == scene_id:
                return i

        from ..engine.errors import SceneNotFoundError
        raise SceneNotFoundError(f"Scene {scene_id} not found in project {self.id}")

    def get_scene(self, scene_id: str) -> Scene:
        return self.scenes[self.index_of(scene_id)]

    def previous_scene(self, scene_id: str) -> Optional[Scene]:
        """Return the scene immediately before ``scene_id``, if any."""
        index = self.index_of(scene_id)
        return self.scenes[index - 1] if index > 0 else None

    def change_aspect_ratio(self, aspect_ratio: str, invalidate: bool = False) -> None:
        """Change the aspect ratio.

        Imagery sized for the old ratio locks it. With ``invalidate`` the
        continuity frames are dropped so they get regenerated at the new size.

        Raises:
            ValueError: If the ratio is not supported.
            AspectRatioLockedError: If dependent imagery exists and
                ``invalidate`` is False.
        """
        from ..engine.errors import AspectRatioLockedError

        if aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Invalid aspect_ratio: {aspect_ratio}. Must be one of {ASPECT_RATIOS}")
        if aspect_ratio == self.aspect_ratio:
            return

        dependent = [
            s.id for s in self.scenes
            if s.continuity_frame is not None or s.attached_assets
        ]
        if dependent and not invalidate:
            raise AspectRatioLockedError(
                f"Aspect ratio is locked by imagery in scenes: {', '.join(dependent)}"
            )

        for scene in self.scenes:
            scene.continuity_frame = None
        if dependent:
            logger.warning(
                f"Aspect ratio changed to {aspect_ratio}; continuity frames cleared, "
                f"imagery for {len(dependent)} scene(s) must be regenerated"
            )
        self.aspect_ratio = aspect_ratio

    @classmethod
    def from_yaml(cls, path: Path) -> "Project":
        """Load project from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save project to YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
