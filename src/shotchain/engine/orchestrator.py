"""Generation orchestration for one scene at a time.

A generation runs submit -> poll -> persist -> extract -> update. The scene
record is only written at the last step, so any failure or cancellation
before the clip is stored leaves the scene exactly as it was. Once the clip
is stored the remaining steps run to completion so the record and the store
never disagree.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..interfaces import (
    ClipStore,
    EvaluationStore,
    JobHandle,
    PollResult,
    ProjectStore,
    Seed,
    VideoSynthesizer,
)
from ..models import Asset, GenerationSettings, GenerationState, Project, Scene, SettingsOverride
from .continuity import ContinuityExtractor
from .costs import CostTracker
from .errors import GenerationCancelledError, SynthesisError, SynthesisTimeoutError
from .prompt import build_scene_prompt
from .references import ReferenceResolver
from .settings import SYSTEM_DEFAULTS, SystemDefaults, resolve_settings

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation for a polling loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        return self._event.is_set()


@dataclass
class Generating:
    """In-flight state of a scene whose job has been submitted."""

    job_handle: Optional[JobHandle]
    started_at: datetime = field(default_factory=datetime.now)
    polls: int = 0


@dataclass
class GenerationOutcome:
    """What a successful generation produced."""

    scene_id: str
    clip_locator: str
    durable: bool
    continuity_captured: bool
    settings: GenerationSettings
    seed_kind: str
    warnings: List[str] = field(default_factory=list)


class GenerationOrchestrator:
    """Drive one scene from prompt to stored clip."""

    DEFAULT_POLL_INTERVAL = 10.0  # seconds
    DEFAULT_MAX_POLL_TIME = 600.0  # 10 minutes

    def __init__(
        self,
        synthesizer: VideoSynthesizer,
        clip_store: ClipStore,
        resolver: ReferenceResolver,
        continuity: Optional[ContinuityExtractor] = None,
        evaluation_store: Optional[EvaluationStore] = None,
        project_store: Optional[ProjectStore] = None,
        cost_tracker: Optional[CostTracker] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_time: float = DEFAULT_MAX_POLL_TIME,
        defaults: SystemDefaults = SYSTEM_DEFAULTS,
    ) -> None:
        self._synthesizer = synthesizer
        self._clip_store = clip_store
        self._resolver = resolver
        self._continuity = continuity or ContinuityExtractor()
        self._evaluation_store = evaluation_store
        self._project_store = project_store
        self._cost_tracker = cost_tracker
        self._poll_interval = poll_interval
        self._max_poll_time = max_poll_time
        self._defaults = defaults
        self._in_flight: Dict[str, Generating] = {}

    @property
    def generating(self) -> FrozenSet[str]:
        """Ids of scenes with a generation in flight."""
        return frozenset(self._in_flight)

    def in_flight(self, scene_id: str) -> Optional[Generating]:
        return self._in_flight.get(scene_id)

    def state_of(self, scene: Scene) -> GenerationState:
        if scene.id in self._in_flight:
            return GenerationState.GENERATING
        return scene.generation_state

    async def generate(
        self,
        project: Project,
        scene_id: str,
        override: Optional[SettingsOverride] = None,
        cancel_token: Optional[CancelToken] = None,
        project_assets: Optional[Sequence[Asset]] = None,
    ) -> GenerationOutcome:
        """Generate (or regenerate) the clip for one scene.

        Raises:
            SceneNotFoundError: If the scene is not in the project.
            ValueError: If the scene has no prompt.
            SynthesisError: If the job fails or times out.
            GenerationCancelledError: If cancelled before the job completed.
        """
        scene = project.get_scene(scene_id)
        if not scene.prompt or not scene.prompt.strip():
            raise ValueError(f"Scene {scene_id} has no prompt")

        settings = resolve_settings(project, override or scene.settings_override, self._defaults)
        prompt = build_scene_prompt(scene)

        self._in_flight[scene_id] = Generating(job_handle=None)
        try:
            seed = await self._resolver.resolve(project, scene_id, project_assets)
            logger.info(
                f"Generating scene {scene_id} ({settings.model}, {settings.aspect_ratio}, "
                f"{settings.resolution}, seed={seed.kind})"
            )
            logger.debug(f"Prompt: {prompt[:100]}...")

            handle = await asyncio.to_thread(self._synthesizer.submit, prompt, settings, seed)
            self._in_flight[scene_id] = Generating(job_handle=handle)

            result = await self._wait_for_job(scene_id, handle, cancel_token)
            return await self._complete(project, scene, settings, seed, result)
        except asyncio.CancelledError:
            logger.warning(f"Generation of scene {scene_id} cancelled")
            raise
        except Exception as e:
            logger.error(f"Generation of scene {scene_id} failed: {e}")
            raise
        finally:
            self._in_flight.pop(scene_id, None)

    async def _wait_for_job(
        self,
        scene_id: str,
        handle: JobHandle,
        cancel_token: Optional[CancelToken],
    ) -> PollResult:
        start_time = time.monotonic()
        state = self._in_flight[scene_id]

        while True:
            if cancel_token is not None and cancel_token.cancelled:
                raise GenerationCancelledError(f"Generation of scene {scene_id} cancelled")

            state.polls += 1
            logger.debug(f"Polling job (attempt {state.polls}): {handle.job_id}")
            result = await asyncio.to_thread(self._synthesizer.poll, handle)

            if result.error:
                raise SynthesisError(f"Job {handle.job_id} failed: {result.error}")
            if result.done:
                if result.clip is None:
                    raise SynthesisError(f"Job {handle.job_id} finished without a clip")
                logger.info(f"Job {handle.job_id} completed after {state.polls} poll(s)")
                return result

            elapsed = time.monotonic() - start_time
            if elapsed >= self._max_poll_time:
                raise SynthesisTimeoutError(
                    f"Job {handle.job_id} timed out after {self._max_poll_time}s"
                )

            delay = min(self._poll_interval, self._max_poll_time - elapsed)
            if cancel_token is not None:
                if await cancel_token.wait(delay):
                    raise GenerationCancelledError(f"Generation of scene {scene_id} cancelled")
            else:
                await asyncio.sleep(delay)

    async def _complete(
        self,
        project: Project,
        scene: Scene,
        settings: GenerationSettings,
        seed: Seed,
        result: PollResult,
    ) -> GenerationOutcome:
        warnings: List[str] = []
        clip = result.clip

        durable = True
        try:
            locator = await asyncio.to_thread(self._clip_store.save, project.id, scene.id, clip)
        except Exception as e:
            if not result.locator:
                raise SynthesisError(
                    f"Clip for scene {scene.id} could not be stored and the job returned "
                    f"no locator: {e}"
                ) from e
            locator = result.locator
            durable = False
            message = f"Clip storage failed ({e}); using transient locator {locator}"
            logger.error(f"Scene {scene.id}: {message}")
            warnings.append(message)

        # Past this point the store holds the new clip; the record update always completes.
        finish = asyncio.ensure_future(
            self._finish(project, scene, settings, seed, clip, locator, durable, warnings)
        )
        try:
            return await asyncio.shield(finish)
        except asyncio.CancelledError:
            logger.warning(f"Scene {scene.id}: cancelled after the clip was stored; finishing the update")
            await asyncio.wait({finish})
            raise

    async def _finish(
        self,
        project: Project,
        scene: Scene,
        settings: GenerationSettings,
        seed: Seed,
        clip: bytes,
        locator: str,
        durable: bool,
        warnings: List[str],
    ) -> GenerationOutcome:
        frame = await self._continuity.extract(clip, scene.duration)
        if frame is None:
            warnings.append("Continuity frame unavailable; the next scene will not chain from this one")

        # Single transition point for the scene record.
        scene.generation_state = GenerationState.GENERATED
        scene.clip_locator = locator
        scene.clip_revision += 1
        scene.settings_used = settings
        scene.continuity_frame = frame
        scene.evaluation = None

        if self._evaluation_store is not None:
            try:
                await asyncio.to_thread(self._evaluation_store.delete, project.id, scene.id)
            except Exception as e:
                message = f"Stored evaluation could not be deleted: {e}"
                logger.error(f"Scene {scene.id}: {message}")
                warnings.append(message)

        if self._project_store is not None:
            try:
                await asyncio.to_thread(self._project_store.save, project)
            except Exception as e:
                message = f"Project could not be saved: {e}"
                logger.error(f"Scene {scene.id}: {message}")
                warnings.append(message)

        if self._cost_tracker is not None:
            self._cost_tracker.track_video_generation(scene.duration, settings.resolution, settings.model)

        logger.info(f"Scene {scene.id} generated -> {locator}")
        return GenerationOutcome(
            scene_id=scene.id,
            clip_locator=locator,
            durable=durable,
            continuity_captured=frame is not None,
            settings=settings,
            seed_kind=seed.kind,
            warnings=warnings,
        )
