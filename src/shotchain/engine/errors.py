"""Engine exceptions."""


class ShotchainError(Exception):
    """Base class for engine errors."""


class SceneNotFoundError(ShotchainError, KeyError):
    """No scene with the requested id exists in the project."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Scene not found"


class AspectRatioLockedError(ShotchainError):
    """Aspect ratio change refused because imagery depends on it."""


class SynthesisError(ShotchainError):
    """The video-synthesis job reported an error or produced nothing."""


class SynthesisTimeoutError(SynthesisError):
    """The job did not finish within the polling budget."""


class GenerationCancelledError(ShotchainError):
    """Generation was cancelled before the job completed."""


class PersistenceError(ShotchainError):
    """A store write failed."""


class EvaluationError(ShotchainError):
    """An evaluation sub-step failed; nothing was persisted."""


class ExtractionError(EvaluationError):
    """A frame or audio track could not be pulled out of a clip."""
