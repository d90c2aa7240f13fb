"""Collaborator contracts consumed by the engine.

The engine talks to video synthesis, storage and judging services only through
the protocols below. Concrete implementations live in ``shotchain.services``,
``shotchain.agents`` and ``shotchain.storage``; tests substitute fakes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Union

from .models import Asset, Evaluation, GenerationSettings, ImagePayload, Project


# Seed variants produced by the reference resolver. Exactly one per call.

@dataclass(frozen=True)
class ReferenceImages:
    """Ordered reference images; never combined with a start frame."""

    images: tuple

    def __post_init__(self) -> None:
        if not self.images:
            raise ValueError("ReferenceImages requires at least one image")

    kind = "reference_images"


@dataclass(frozen=True)
class StartFrame:
    """A single frame the clip must open on."""

    image: ImagePayload

    kind = "start_frame"


@dataclass(frozen=True)
class NoSeed:
    """Prompt-only generation."""

    kind = "none"


Seed = Union[ReferenceImages, StartFrame, NoSeed]


@dataclass
class JobHandle:
    """Handle to a submitted synthesis job."""

    job_id: str
    model: str
    submitted_at: datetime = field(default_factory=datetime.now)


@dataclass
class PollResult:
    """Snapshot of a synthesis job."""

    done: bool
    clip: Optional[bytes] = None
    locator: Optional[str] = None
    error: Optional[str] = None


@dataclass
class Judgement:
    """Score and free-text analysis returned by a judge."""

    score: float
    analysis: str = ""
    matches: bool = False

    def __post_init__(self) -> None:
        self.score = max(0.0, min(100.0, float(self.score)))


class VideoSynthesizer(Protocol):
    def submit(self, prompt: str, settings: GenerationSettings, seed: Seed) -> JobHandle: ...

    def poll(self, handle: JobHandle) -> PollResult: ...


class ClipStore(Protocol):
    def save(self, project_id: str, scene_id: str, clip: bytes) -> str: ...

    def list(self, project_id: str) -> Dict[str, str]: ...

    def read(self, locator: str) -> bytes: ...

    def delete(self, project_id: str, scene_id: str) -> None: ...


class EvaluationStore(Protocol):
    def save(self, project_id: str, scene_id: str, evaluation: Evaluation) -> None: ...

    def list_for_project(self, project_id: str) -> Dict[str, Evaluation]: ...

    def delete(self, project_id: str, scene_id: str) -> None: ...


class AssetStore(Protocol):
    def get_asset(self, asset_id: str) -> Asset: ...

    def list_for_project(self, project_id: str) -> List[Asset]: ...


class ProjectStore(Protocol):
    def load(self, project_id: str) -> Project: ...

    def save(self, project: Project) -> None: ...


class MediaFetcher(Protocol):
    def fetch(self, locator: str) -> bytes: ...


class FrameScorer(Protocol):
    def score_frame(self, image: ImagePayload, expected_prompt: str, frame_type: str) -> Judgement: ...


class Transcriber(Protocol):
    def transcribe(self, audio: bytes, filename: str = "audio.mp3") -> str: ...


class DialogueComparer(Protocol):
    def compare_dialogue(self, expected: str, transcribed: str) -> Judgement: ...
