"""Estimated spend tracking for generations and evaluations."""

import json
import logging
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Estimated USD pricing. Video prices are per ~8s clip.
VIDEO_PRICING: Dict[str, Dict[str, float]] = {
    "veo-2": {"720p": 0.15, "1080p": 0.25},
    "veo-3.1": {"720p": 0.20, "1080p": 0.35},
}
FRAME_ANALYSIS_PRICE = 0.01
WHISPER_PRICE_PER_MINUTE = 0.006
BASELINE_CLIP_SECONDS = 8.0


class CostType(str, Enum):
    VIDEO = "video"
    EVALUATION = "evaluation"


class CostEntry(BaseModel):
    """One tracked charge."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: datetime = Field(default_factory=datetime.now)
    type: CostType
    duration: Optional[float] = None
    resolution: Optional[str] = None
    model: Optional[str] = None
    estimated_cost: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class CostSummary(BaseModel):
    total_cost: float
    video_generations: int
    evaluations: int
    entries: List[CostEntry]


def pricing_family(model: str) -> str:
    """Map a concrete model name (e.g. veo-3.1-generate-preview) to a price family."""
    for family in sorted(VIDEO_PRICING, key=len, reverse=True):
        if model.startswith(family):
            return family
    return "veo-3.1"


class CostTracker:
    """Append-only JSON ledger of estimated costs."""

    def __init__(self, ledger_path: Path) -> None:
        self._path = ledger_path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> List[CostEntry]:
        if not self._path.exists():
            return []
        try:
            with open(self._path, "r") as f:
                return [CostEntry(**item) for item in json.load(f)]
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load cost ledger {self._path}: {e}")
            return []

    def _append(self, entry: CostEntry) -> CostEntry:
        entries = self.load()
        entries.append(entry)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump([e.model_dump(mode="json") for e in entries], f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save cost ledger {self._path}: {e}")
        return entry

    def track_video_generation(self, duration: float, resolution: str, model: str) -> CostEntry:
        prices = VIDEO_PRICING[pricing_family(model)]
        base = prices.get(resolution, VIDEO_PRICING["veo-3.1"]["720p"])
        return self._append(CostEntry(
            type=CostType.VIDEO,
            duration=duration,
            resolution=resolution,
            model=model,
            estimated_cost=base * (duration / BASELINE_CLIP_SECONDS),
        ))

    def track_evaluation(self, audio_duration: float = 0.0, includes_audio: bool = False) -> CostEntry:
        # Two frame analyses per evaluation
        cost = FRAME_ANALYSIS_PRICE * 2
        if includes_audio and audio_duration > 0:
            cost += WHISPER_PRICE_PER_MINUTE * (audio_duration / 60)
        return self._append(CostEntry(
            type=CostType.EVALUATION,
            duration=audio_duration,
            estimated_cost=cost,
            metadata={"includes_audio": includes_audio},
        ))

    def summary(self) -> CostSummary:
        entries = self.load()
        return CostSummary(
            total_cost=sum(e.estimated_cost for e in entries),
            video_generations=sum(1 for e in entries if e.type == CostType.VIDEO),
            evaluations=sum(1 for e in entries if e.type == CostType.EVALUATION),
            entries=entries,
        )

    def between(self, start: datetime, end: datetime) -> List[CostEntry]:
        return [e for e in self.load() if start <= e.timestamp <= end]

    def to_csv(self) -> str:
        lines = ["Timestamp,Type,Duration,Resolution,Model,Cost"]
        for e in self.load():
            lines.append(
                f"{e.timestamp.isoformat()},{e.type.value},"
                f"{e.duration if e.duration is not None else ''},"
                f"{e.resolution or ''},{e.model or ''},{e.estimated_cost:.4f}"
            )
        return "\n".join(lines) + "\n"

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
