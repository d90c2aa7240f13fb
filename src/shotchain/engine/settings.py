"""Settings resolution for a single generation call."""

from dataclasses import dataclass
from typing import Optional

from ..config import Config
from ..models import GenerationSettings, Project, SettingsOverride


@dataclass(frozen=True)
class SystemDefaults:
    """Last-resort generation defaults."""

    model: str = "veo-3.1-generate-preview"
    resolution: str = "720p"
    is_looping: bool = False

    @classmethod
    def from_config(cls, cfg: Config) -> "SystemDefaults":
        return cls(model=cfg.veo_model, resolution=cfg.default_resolution)


SYSTEM_DEFAULTS = SystemDefaults()


def resolve_settings(
    project: Project,
    override: Optional[SettingsOverride] = None,
    defaults: SystemDefaults = SYSTEM_DEFAULTS,
) -> GenerationSettings:
    """Merge override, project defaults and system defaults.

    Each field takes the first value that is set, in that order. Aspect ratio
    always comes from the project.
    """
    override = override or SettingsOverride()

    return GenerationSettings(
        model=override.model or project.defaults.model or defaults.model,
        aspect_ratio=project.aspect_ratio,
        resolution=override.resolution or project.defaults.resolution or defaults.resolution,
        is_looping=(
            override.is_looping if override.is_looping is not None else defaults.is_looping
        ),
    )
