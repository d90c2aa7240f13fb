"""Merge stored clips and evaluations into a loaded project."""

import logging
from typing import Optional

from ..interfaces import ClipStore, EvaluationStore
from ..models import GenerationState, Project

logger = logging.getLogger(__name__)


def hydrate_project(
    project: Project,
    clip_store: ClipStore,
    evaluation_store: Optional[EvaluationStore] = None,
) -> Project:
    """Attach stored clip locators and evaluations to the project's scenes.

    A store that cannot be read is logged and skipped. Evaluations are only
    attached to scenes that have a clip.
    """
    try:
        clips = clip_store.list(project.id)
    except Exception as e:
        logger.error(f"Failed to list clips for project {project.id}: {e}")
        clips = {}

    for scene in project.scenes:
        locator = clips.get(scene.id)
        if locator:
            scene.clip_locator = locator
            scene.generation_state = GenerationState.GENERATED

    if evaluation_store is None:
        return project

    try:
        evaluations = evaluation_store.list_for_project(project.id)
    except Exception as e:
        logger.error(f"Failed to list evaluations for project {project.id}: {e}")
        return project

    for scene in project.scenes:
        evaluation = evaluations.get(scene.id)
        if evaluation is not None and scene.clip_locator:
            scene.evaluation = evaluation

    logger.debug(
        f"Hydrated project {project.id}: {len(clips)} clip(s), {len(evaluations)} evaluation(s)"
    )
    return project
