"""Evaluation data models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class FrameType(str, Enum):
    """Which end of the clip a frame was taken from."""
    FIRST = "first"
    LAST = "last"


class FrameEvaluation(BaseModel):
    """Judgement of one still frame against the scene prompt."""

    frame_type: FrameType
    timestamp: float = Field(..., description="Seconds into the clip", ge=0)
    score: float = Field(..., ge=0, le=100)
    matches_prompt: bool = False
    analysis: str = ""


class AudioEvaluation(BaseModel):
    """Judgement of the clip's transcribed audio against the expected dialogue."""

    expected_text: str
    transcribed_text: str
    score: float = Field(..., ge=0, le=100)
    matches_dialogue: bool = False
    analysis: str = ""


class Evaluation(BaseModel):
    """Result of one evaluation run for a scene."""

    first_frame: FrameEvaluation
    last_frame: FrameEvaluation
    audio: Optional[AudioEvaluation] = None
    overall_score: float = Field(..., ge=0, le=100)
    created_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def combine(
        cls,
        first_frame: FrameEvaluation,
        last_frame: FrameEvaluation,
        audio: Optional[AudioEvaluation] = None,
    ) -> "Evaluation":
        """Build an evaluation whose overall score is the mean of the computed sub-scores."""
        scores = [first_frame.score, last_frame.score]
        if audio is not None:
            scores.append(audio.score)

        return cls(
            first_frame=first_frame,
            last_frame=last_frame,
            audio=audio,
            overall_score=sum(scores) / len(scores),
        )
