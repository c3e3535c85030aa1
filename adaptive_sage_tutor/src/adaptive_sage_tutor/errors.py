"""
Error Taxonomy for the Adaptive Tutor

Failures inside the adaptive subsystem (classification, recommendations,
snapshot persistence) are recovered locally and only logged.
ReplyGenerationError is the one failure that reaches the caller.
"""

from typing import Optional


class AdaptiveTutorError(Exception):
    """Base class for all adaptive tutor errors."""


class GenerationError(AdaptiveTutorError):
    """The generative text service call failed."""


class GenerationTimeoutError(GenerationError):
    """The generative text service did not answer within the timeout."""


class MalformedResponseError(GenerationError):
    """The service answered, but not with a usable JSON object."""


class AssessmentParseError(MalformedResponseError):
    """A JSON payload does not fit the DifficultyAssessment shape."""


class ClassificationError(AdaptiveTutorError):
    """Difficulty classification failed; carries the underlying cause."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ReplyGenerationError(AdaptiveTutorError):
    """The tutor reply could not be generated. Fatal to the chat turn."""


class SnapshotPersistenceError(AdaptiveTutorError):
    """A learner-state snapshot could not be written."""
