"""Data models for the scene engine."""

from .asset import Asset, AssetCategory, AssetRole, AttachedAsset
from .evaluation import AudioEvaluation, Evaluation, FrameEvaluation, FrameType
from .image import ImagePayload
from .project import Project
from .scene import PREVIOUS, GenerationState, ReferenceMode, Scene
from .settings import GenerationSettings, ProjectDefaults, SettingsOverride

__all__ = [
    "Asset",
    "AssetCategory",
    "AssetRole",
    "AttachedAsset",
    "AudioEvaluation",
    "Evaluation",
    "FrameEvaluation",
    "FrameType",
    "ImagePayload",
    "Project",
    "PREVIOUS",
    "GenerationState",
    "ReferenceMode",
    "Scene",
    "GenerationSettings",
    "ProjectDefaults",
    "SettingsOverride",
]
