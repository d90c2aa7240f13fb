"""Scene generation orchestration and continuity engine."""

__version__ = "0.1.0"
