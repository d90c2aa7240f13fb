"""Seed selection for a scene.

Resolution walks an ordered list of strategies; the first one that returns a
seed wins. A strategy returns ``None`` when it does not apply, which is
different from returning ``NoSeed()`` (it applies, and the answer is
prompt-only generation).
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..interfaces import AssetStore, MediaFetcher, NoSeed, ReferenceImages, Seed, StartFrame
from ..models import PREVIOUS, Asset, ImagePayload, Project, ReferenceMode, Scene

logger = logging.getLogger(__name__)

_MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


def guess_mime_type(locator: str) -> str:
    lowered = locator.lower().split("?", 1)[0]
    for suffix, mime in _MIME_BY_SUFFIX.items():
        if lowered.endswith(suffix):
            return mime
    return "image/png"


def effective_mode(project: Project, scene: Scene) -> ReferenceMode:
    """The scene's reference mode, defaulting to slot 1 for the first scene and
    previous-frame chaining for every later one."""
    if scene.reference_mode is not None:
        return scene.reference_mode
    return 1 if project.index_of(scene.id) == 0 else PREVIOUS


@dataclass
class ResolutionContext:
    """Everything a strategy may look at for one resolution."""

    project: Project
    scene: Scene
    mode: ReferenceMode
    fetcher: MediaFetcher
    asset_store: Optional[AssetStore] = None
    project_assets: Optional[Sequence[Asset]] = None

    async def fetch_image(self, locator: str) -> ImagePayload:
        raw = await asyncio.to_thread(self.fetcher.fetch, locator)
        return ImagePayload.from_bytes(raw, guess_mime_type(locator))


class ResolverStrategy(ABC):
    """One branch of the priority chain."""

    name: str = "strategy"

    @abstractmethod
    async def resolve(self, ctx: ResolutionContext) -> Optional[Seed]:
        ...


class AttachedAssetsStrategy(ResolverStrategy):
    """Use the scene's attached assets, in priority order."""

    name = "attached_assets"

    async def resolve(self, ctx: ResolutionContext) -> Optional[Seed]:
        if not ctx.scene.attached_assets:
            return None
        if ctx.asset_store is None:
            logger.warning(
                f"Scene {ctx.scene.id} has attached assets but no asset store is configured"
            )
            return None

        images: List[ImagePayload] = []
        for attachment in sorted(ctx.scene.attached_assets, key=lambda a: a.order):
            asset = await asyncio.to_thread(ctx.asset_store.get_asset, attachment.asset_id)
            images.append(await ctx.fetch_image(asset.image_locator))

        logger.info(f"Scene {ctx.scene.id}: seeding from {len(images)} attached asset(s)")
        return ReferenceImages(tuple(images))


class PreviousSceneStrategy(ResolverStrategy):
    """Chain from the preceding scene's continuity frame."""

    name = "previous"

    async def resolve(self, ctx: ResolutionContext) -> Optional[Seed]:
        if ctx.mode != PREVIOUS:
            return None

        previous = ctx.project.previous_scene(ctx.scene.id)
        if previous is None:
            logger.info(f"Scene {ctx.scene.id} is first; no previous frame, prompt only")
            return NoSeed()

        if previous.continuity_frame is None:
            logger.warning(
                f"Previous scene {previous.id} has no continuity frame; "
                f"scene {ctx.scene.id} generates from prompt only"
            )
            return NoSeed()

        logger.info(f"Scene {ctx.scene.id}: using last frame of {previous.id} for continuity")
        return StartFrame(previous.continuity_frame)


class ReferenceSlotStrategy(ResolverStrategy):
    """Pick one numbered slot from the available reference pool."""

    name = "reference_slot"

    def _pool(self, ctx: ResolutionContext) -> List[str]:
        if ctx.project_assets:
            return [asset.image_locator for asset in ctx.project_assets]
        return list(ctx.project.reference_images)

    async def resolve(self, ctx: ResolutionContext) -> Optional[Seed]:
        if not isinstance(ctx.mode, int) or isinstance(ctx.mode, bool):
            return None

        pool = self._pool(ctx)
        slot = ctx.mode

        if 1 <= slot <= len(pool):
            logger.info(f"Scene {ctx.scene.id}: using reference slot {slot}")
            return ReferenceImages((await ctx.fetch_image(pool[slot - 1]),))

        logger.warning(
            f"Scene {ctx.scene.id}: reference slot {slot} out of range "
            f"({len(pool)} available); using the whole pool"
        )
        if not pool:
            return NoSeed()
        images = [await ctx.fetch_image(locator) for locator in pool]
        return ReferenceImages(tuple(images))


DEFAULT_STRATEGIES = (
    AttachedAssetsStrategy(),
    PreviousSceneStrategy(),
    ReferenceSlotStrategy(),
)


class ReferenceResolver:
    """Decide which image, if any, seeds a scene's generation."""

    def __init__(
        self,
        fetcher: MediaFetcher,
        asset_store: Optional[AssetStore] = None,
        strategies: Optional[Sequence[ResolverStrategy]] = None,
    ) -> None:
        self._fetcher = fetcher
        self._asset_store = asset_store
        self._strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES

    async def resolve(
        self,
        project: Project,
        scene_id: str,
        project_assets: Optional[Sequence[Asset]] = None,
    ) -> Seed:
        scene = project.get_scene(scene_id)
        ctx = ResolutionContext(
            project=project,
            scene=scene,
            mode=effective_mode(project, scene),
            fetcher=self._fetcher,
            asset_store=self._asset_store,
            project_assets=project_assets,
        )

        for strategy in self._strategies:
            seed = await strategy.resolve(ctx)
            if seed is not None:
                logger.debug(f"Scene {scene_id} resolved by {strategy.name}: {seed.kind}")
                return seed

        return NoSeed()
