"""
Shared fixtures and in-memory collaborators for the engine tests.

The fakes implement the protocols in shotchain.interfaces with plain
dictionaries so tests can inspect exactly what was stored or requested.
"""

import itertools
from typing import Dict, List, Optional

import pytest

from shotchain.engine.errors import PersistenceError
from shotchain.interfaces import JobHandle, PollResult
from shotchain.models import Asset, Evaluation, ImagePayload, Project, Scene


class FakeSynthesizer:
    """Scripted video synthesizer.

    ``script`` is a list of PollResults returned in order for every job; once
    it runs out the job completes with a clip named after the job.
    """

    def __init__(self, script: Optional[List[PollResult]] = None) -> None:
        self.script = list(script or [])
        self.submits: List[tuple] = []
        self.polls: List[str] = []
        self._ids = itertools.count(1)

    def submit(self, prompt, settings, seed) -> JobHandle:
        self.submits.append((prompt, settings, seed))
        return JobHandle(job_id=f"job-{next(self._ids)}", model=settings.model)

    def poll(self, handle: JobHandle) -> PollResult:
        self.polls.append(handle.job_id)
        if self.script:
            return self.script.pop(0)
        return PollResult(
            done=True,
            clip=f"clip:{handle.job_id}".encode(),
            locator=f"gs://veo-out/{handle.job_id}.mp4",
        )

    @property
    def last_seed(self):
        return self.submits[-1][2]


class FakeClipStore:
    def __init__(self, fail: bool = False) -> None:
        self.clips: Dict[str, bytes] = {}
        self.fail = fail

    def save(self, project_id: str, scene_id: str, clip: bytes) -> str:
        if self.fail:
            raise PersistenceError("disk full")
        locator = f"mem://{project_id}/{scene_id}.mp4"
        self.clips[locator] = clip
        return locator

    def list(self, project_id: str) -> Dict[str, str]:
        prefix = f"mem://{project_id}/"
        return {
            loc[len(prefix):-4]: loc for loc in self.clips if loc.startswith(prefix)
        }

    def read(self, locator: str) -> bytes:
        return self.clips[locator]

    def delete(self, project_id: str, scene_id: str) -> None:
        self.clips.pop(f"mem://{project_id}/{scene_id}.mp4", None)


class FakeEvaluationStore:
    def __init__(self, fail: bool = False) -> None:
        self.evaluations: Dict[tuple, Evaluation] = {}
        self.deleted: List[tuple] = []
        self.fail = fail

    def save(self, project_id: str, scene_id: str, evaluation: Evaluation) -> None:
        if self.fail:
            raise PersistenceError("evaluation store offline")
        self.evaluations[(project_id, scene_id)] = evaluation

    def list_for_project(self, project_id: str) -> Dict[str, Evaluation]:
        return {s: e for (p, s), e in self.evaluations.items() if p == project_id}

    def delete(self, project_id: str, scene_id: str) -> None:
        self.deleted.append((project_id, scene_id))
        self.evaluations.pop((project_id, scene_id), None)


class FakeProjectStore:
    def __init__(self) -> None:
        self.saved: List[dict] = []

    def load(self, project_id: str) -> Project:
        raise FileNotFoundError(project_id)

    def save(self, project: Project) -> None:
        self.saved.append(project.model_dump(mode="json"))


class FakeFetcher:
    """Serves bytes for known locators and records every fetch."""

    def __init__(self, media: Optional[Dict[str, bytes]] = None) -> None:
        self.media = dict(media or {})
        self.fetched: List[str] = []

    def fetch(self, locator: str) -> bytes:
        self.fetched.append(locator)
        if locator not in self.media:
            raise FileNotFoundError(locator)
        return self.media[locator]


class FakeAssetStore:
    def __init__(self, assets: Optional[List[Asset]] = None) -> None:
        self.assets = {a.id: a for a in assets or []}

    def get_asset(self, asset_id: str) -> Asset:
        return self.assets[asset_id]

    def list_for_project(self, project_id: str) -> List[Asset]:
        return [a for a in self.assets.values() if a.project_id == project_id]


class FrameRecorder:
    """Frame grabber that returns a deterministic image per timestamp."""

    def __init__(self, fail: bool = False) -> None:
        self.calls: List[tuple] = []
        self.fail = fail

    def __call__(self, clip: bytes, at: float) -> ImagePayload:
        self.calls.append((clip, at))
        if self.fail:
            raise RuntimeError("decoder exploded")
        return ImagePayload.from_bytes(f"frame@{at:.2f}".encode())


REFERENCE_IMAGES = ["refs/hero.png", "refs/street.jpg", "refs/car.png"]


def image_for(locator: str) -> bytes:
    return f"image:{locator}".encode()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def clip_store():
    return FakeClipStore()


@pytest.fixture
def evaluation_store():
    return FakeEvaluationStore()


@pytest.fixture
def project_store():
    return FakeProjectStore()


@pytest.fixture
def fetcher():
    return FakeFetcher({loc: image_for(loc) for loc in REFERENCE_IMAGES})


@pytest.fixture
def frame_grabber():
    return FrameRecorder()


@pytest.fixture
def project():
    """Three-scene project with three reference images."""
    return Project(
        id="proj-1",
        title="Night Drive",
        reference_images=list(REFERENCE_IMAGES),
        scenes=[
            Scene(id="s1", title="Opening", prompt="A woman walks to her car at night"),
            Scene(
                id="s2",
                title="Drive",
                prompt="She drives through neon streets",
                dialogue="Where are we going?",
            ),
            Scene(id="s3", title="Arrival", prompt="The car pulls up to a diner", camera="Slow dolly in"),
        ],
    )
