"""Scene generation orchestration and continuity engine."""

from .continuity import ContinuityExtractor
from .costs import CostTracker
from .errors import (
    AspectRatioLockedError,
    EvaluationError,
    ExtractionError,
    GenerationCancelledError,
    PersistenceError,
    SceneNotFoundError,
    ShotchainError,
    SynthesisError,
    SynthesisTimeoutError,
)
from .evaluation import EvaluationAggregator
from .hydration import hydrate_project
from .orchestrator import CancelToken, GenerationOrchestrator, GenerationOutcome
from .prompt import build_prompt, build_scene_prompt
from .references import ReferenceResolver, effective_mode
from .settings import SYSTEM_DEFAULTS, SystemDefaults, resolve_settings

__all__ = [
    "ContinuityExtractor",
    "CostTracker",
    "AspectRatioLockedError",
    "EvaluationError",
    "ExtractionError",
    "GenerationCancelledError",
    "PersistenceError",
    "SceneNotFoundError",
    "ShotchainError",
    "SynthesisError",
    "SynthesisTimeoutError",
    "EvaluationAggregator",
    "hydrate_project",
    "CancelToken",
    "GenerationOrchestrator",
    "GenerationOutcome",
    "build_prompt",
    "build_scene_prompt",
    "ReferenceResolver",
    "effective_mode",
    "SYSTEM_DEFAULTS",
    "SystemDefaults",
    "resolve_settings",
]
