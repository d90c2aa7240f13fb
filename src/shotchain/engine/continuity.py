"""Continuity frame extraction."""

import asyncio
import logging
from typing import Callable, Optional

from ..editor.frames import grab_frame
from ..models import ImagePayload

logger = logging.getLogger(__name__)

FrameGrabber = Callable[[bytes, float], ImagePayload]

DEFAULT_MARGIN = 0.5


class ContinuityExtractor:
    """Pull a still near the end of a fresh clip to seed the next scene.

    Best effort: a failure is logged and reported as ``None``; it never fails
    the generation that produced the clip.
    """

    def __init__(
        self,
        frame_grabber: FrameGrabber = grab_frame,
        margin: float = DEFAULT_MARGIN,
    ) -> None:
        self._grab = frame_grabber
        self._margin = margin

    def timestamp_for(self, duration: float) -> float:
        return max(0.0, duration - self._margin)

    async def extract(self, clip: bytes, duration: float) -> Optional[ImagePayload]:
        at = self.timestamp_for(duration)
        try:
            frame = await asyncio.to_thread(self._grab, clip, at)
        except Exception as e:
            logger.error(f"Continuity frame extraction failed at {at:.2f}s: {e}")
            return None

        logger.debug(f"Extracted continuity frame at {at:.2f}s")
        return frame
