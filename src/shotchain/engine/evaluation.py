"""Multi-modal quality scoring of generated clips."""

import asyncio
import logging
from typing import Callable, FrozenSet, Optional, Set

from ..editor.audio import extract_audio_track
from ..editor.frames import grab_frame
from ..interfaces import (
    DialogueComparer,
    EvaluationStore,
    FrameScorer,
    MediaFetcher,
    ProjectStore,
    Transcriber,
)
from ..models import AudioEvaluation, Evaluation, FrameEvaluation, FrameType, Project, Scene
from .continuity import FrameGrabber
from .costs import CostTracker
from .errors import EvaluationError, ExtractionError

logger = logging.getLogger(__name__)

AudioExtractor = Callable[[bytes], bytes]

FIRST_FRAME_AT = 0.1
LAST_FRAME_MARGIN = 0.5


class EvaluationAggregator:
    """Score a scene's clip against its prompt and dialogue.

    First and last frames are always judged. The audio track is judged only
    when a transcriber is configured and the scene has dialogue. The overall
    score is the mean of whichever sub-scores were computed. Any failing step
    aborts the run and nothing is stored.
    """

    def __init__(
        self,
        frame_scorer: FrameScorer,
        fetcher: MediaFetcher,
        transcriber: Optional[Transcriber] = None,
        dialogue_comparer: Optional[DialogueComparer] = None,
        evaluation_store: Optional[EvaluationStore] = None,
        project_store: Optional[ProjectStore] = None,
        frame_grabber: FrameGrabber = grab_frame,
        audio_extractor: AudioExtractor = extract_audio_track,
        cost_tracker: Optional[CostTracker] = None,
    ) -> None:
        if transcriber is not None and dialogue_comparer is None:
            raise ValueError("A dialogue comparer is required when a transcriber is configured")

        self._frame_scorer = frame_scorer
        self._fetcher = fetcher
        self._transcriber = transcriber
        self._dialogue_comparer = dialogue_comparer
        self._evaluation_store = evaluation_store
        self._project_store = project_store
        self._grab = frame_grabber
        self._extract_audio = audio_extractor
        self._cost_tracker = cost_tracker
        self._in_flight: Set[str] = set()

    @property
    def evaluating(self) -> FrozenSet[str]:
        """Ids of scenes with an evaluation in flight."""
        return frozenset(self._in_flight)

    @property
    def audio_enabled(self) -> bool:
        return self._transcriber is not None

    async def evaluate(self, project: Project, scene_id: str) -> Evaluation:
        """Evaluate one scene and replace its previous evaluation.

        Raises:
            SceneNotFoundError: If the scene is not in the project.
            EvaluationError: If the scene has no clip, any step fails or the
                clip was regenerated while the evaluation ran.
        """
        scene = project.get_scene(scene_id)
        if not scene.clip_locator:
            raise EvaluationError(f"Scene {scene_id} has no clip to evaluate")

        clip_version = (scene.clip_revision, scene.clip_locator)
        self._in_flight.add(scene_id)
        try:
            evaluation = await self._run(scene)
        except EvaluationError as e:
            logger.error(f"Evaluation of scene {scene_id} failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Evaluation of scene {scene_id} failed: {e}")
            raise EvaluationError(f"Evaluation of scene {scene_id} failed: {e}") from e
        finally:
            self._in_flight.discard(scene_id)

        current = project.get_scene(scene_id)
        if current is not scene or (current.clip_revision, current.clip_locator) != clip_version:
            message = f"Scene {scene_id} was regenerated while it was being evaluated; result discarded"
            logger.warning(message)
            raise EvaluationError(message)

        scene.evaluation = evaluation
        await self._persist(project, scene, evaluation)

        if self._cost_tracker is not None:
            self._cost_tracker.track_evaluation(scene.duration, evaluation.audio is not None)

        logger.info(f"Scene {scene_id} evaluated: overall {evaluation.overall_score:.1f}")
        return evaluation

    async def _run(self, scene: Scene) -> Evaluation:
        clip = await asyncio.to_thread(self._fetcher.fetch, scene.clip_locator)

        last_at = max(0.0, scene.duration - LAST_FRAME_MARGIN)
        logger.info(f"Scene {scene.id}: extracting frames at {FIRST_FRAME_AT}s and {last_at:.2f}s")
        try:
            first_image = await asyncio.to_thread(self._grab, clip, FIRST_FRAME_AT)
            last_image = await asyncio.to_thread(self._grab, clip, last_at)
        except Exception as e:
            raise ExtractionError(f"Frame extraction failed: {e}") from e

        logger.info(f"Scene {scene.id}: judging frames")
        first_judgement, last_judgement = await asyncio.gather(
            asyncio.to_thread(
                self._frame_scorer.score_frame, first_image, scene.prompt, FrameType.FIRST.value
            ),
            asyncio.to_thread(
                self._frame_scorer.score_frame, last_image, scene.prompt, FrameType.LAST.value
            ),
        )

        first = FrameEvaluation(
            frame_type=FrameType.FIRST,
            timestamp=FIRST_FRAME_AT,
            score=first_judgement.score,
            matches_prompt=first_judgement.matches,
            analysis=first_judgement.analysis,
        )
        last = FrameEvaluation(
            frame_type=FrameType.LAST,
            timestamp=last_at,
            score=last_judgement.score,
            matches_prompt=last_judgement.matches,
            analysis=last_judgement.analysis,
        )

        audio = await self._evaluate_audio(scene, clip)
        return Evaluation.combine(first, last, audio)

    async def _evaluate_audio(self, scene: Scene, clip: bytes) -> Optional[AudioEvaluation]:
        expected = (scene.dialogue or "").strip()
        if self._transcriber is None:
            logger.debug(f"Scene {scene.id}: no transcriber configured, skipping audio")
            return None
        if not expected:
            logger.debug(f"Scene {scene.id}: no dialogue, skipping audio")
            return None

        logger.info(f"Scene {scene.id}: transcribing audio")
        try:
            audio = await asyncio.to_thread(self._extract_audio, clip)
        except Exception as e:
            raise ExtractionError(f"Audio extraction failed: {e}") from e
        transcribed = await asyncio.to_thread(self._transcriber.transcribe, audio, "audio.mp3")

        judgement = await asyncio.to_thread(
            self._dialogue_comparer.compare_dialogue, expected, transcribed
        )
        return AudioEvaluation(
            expected_text=expected,
            transcribed_text=transcribed,
            score=judgement.score,
            matches_dialogue=judgement.matches,
            analysis=judgement.analysis,
        )

    async def _persist(self, project: Project, scene: Scene, evaluation: Evaluation) -> None:
        if self._evaluation_store is not None:
            try:
                await asyncio.to_thread(self._evaluation_store.save, project.id, scene.id, evaluation)
            except Exception as e:
                logger.error(f"Failed to save evaluation for scene {scene.id}: {e}")

        if self._project_store is not None:
            try:
                await asyncio.to_thread(self._project_store.save, project)
            except Exception as e:
                logger.error(f"Failed to save project {project.id}: {e}")
