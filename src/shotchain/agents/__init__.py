"""Claude-backed judges for clip evaluation."""

from .base import BaseAgent
from .judges import DialogueJudge, FrameJudge

__all__ = ["BaseAgent", "DialogueJudge", "FrameJudge"]
