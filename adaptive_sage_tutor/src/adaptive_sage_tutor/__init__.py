"""Adaptive difficulty inference for the Sage tutor"""
from .adaptive_tutor import AdaptiveTutor, TutorTurnResult, build_tutor
from .assessment import (
    AdjustDirection,
    ClassificationResult,
    ComprehensionLevel,
    DifficultyAssessment,
    default_assessment,
)
from .config import AdaptiveConfig
from .conversation import ConversationTurn, Role
from .errors import AdaptiveTutorError, ReplyGenerationError
from .learner_state import LearnerStateSnapshot
from .learning_context import LessonContext, ModuleContext, ProgressContext

__all__ = [
    "AdaptiveTutor",
    "TutorTurnResult",
    "build_tutor",
    "AdjustDirection",
    "ClassificationResult",
    "ComprehensionLevel",
    "DifficultyAssessment",
    "default_assessment",
    "AdaptiveConfig",
    "ConversationTurn",
    "Role",
    "AdaptiveTutorError",
    "ReplyGenerationError",
    "LearnerStateSnapshot",
    "LessonContext",
    "ModuleContext",
    "ProgressContext",
]
