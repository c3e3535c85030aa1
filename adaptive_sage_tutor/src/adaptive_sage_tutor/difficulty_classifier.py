"""
Difficulty Classification

Infers a learner's comprehension level from their recent chat turns.

The level is not scored by a formula here: the recent window plus the
lesson/module context is handed to the generative service, which must
answer with the DifficultyAssessment JSON shape. This module owns the
evidence window, the prompt, validation of the answer, and the soft-failure
policy (never raise, report through ClassificationResult).
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from adaptive_sage_tutor.assessment import ClassificationResult, DifficultyAssessment
from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.conversation import ConversationTurn, Role, turns_by_role
from adaptive_sage_tutor.errors import ClassificationError, GenerationError
from adaptive_sage_tutor.learning_context import LessonContext, ModuleContext, declared_difficulty
from adaptive_sage_tutor.llm_client import GenerativeTextService

logger = logging.getLogger(__name__)

# Below this many learner turns there is nothing to classify
MIN_USER_TURNS = 2

# Assistant replies are only context for the classifier; keep them short
ASSISTANT_EXCERPT_CHARS = 200

CLASSIFIER_SYSTEM_DIRECTIVE = (
    "You are an expert learning analytics AI that assesses student comprehension "
    "and learning patterns."
)


class Classifier(ABC):
    """Comprehension classifier behind a narrow typed contract."""

    @abstractmethod
    async def classify(
        self,
        history: List[ConversationTurn],
        lesson: Optional[LessonContext] = None,
        module: Optional[ModuleContext] = None,
    ) -> ClassificationResult:
        """Classify the learner. Must not raise."""


def has_enough_evidence(history: List[ConversationTurn]) -> bool:
    return len(turns_by_role(history, Role.USER)) >= MIN_USER_TURNS


def build_analysis_prompt(
    user_messages: List[str],
    assistant_messages: List[str],
    lesson: Optional[LessonContext],
    module: Optional[ModuleContext],
) -> str:
    """Build the classification prompt from the evidence window and context."""
    user_block = "\n".join(f"{i + 1}. {msg}" for i, msg in enumerate(user_messages))
    assistant_block = "\n".join(
        f"{i + 1}. {msg[:ASSISTANT_EXCERPT_CHARS]}{'...' if len(msg) > ASSISTANT_EXCERPT_CHARS else ''}"
        for i, msg in enumerate(assistant_messages)
    ) or "(none yet)"

    return f"""Analyze this student's chat interactions to assess their learning difficulty level and comprehension.

CURRENT CONTEXT:
- Lesson: {lesson.title if lesson else "General learning"}
- Module: {module.title if module else "Unknown"}
- Difficulty Level: {declared_difficulty(lesson, module)}

RECENT USER MESSAGES:
{user_block}

RECENT AI RESPONSES:
{assistant_block}

Analyze the user's:
1. Question complexity and depth
2. Concept understanding based on their questions/responses
3. Engagement level and learning patterns
4. Whether they frequently need help or clarification
5. Topic mastery indicators

Respond in JSON format:
{{
  "currentLevel": "struggling|comfortable|advanced|mastery",
  "confidence": 0.0-1.0,
  "indicators": ["Specific observations about their learning level", "Evidence from their messages"],
  "recommendations": {{
    "adjustDifficulty": "increase|decrease|maintain",
    "suggestedContent": ["Additional practice exercises", "Advanced concepts to introduce"],
    "focusAreas": ["Areas needing reinforcement", "Skills to develop"]
  }},
  "adaptivePrompts": {{
    "nextLesson": "Prompt modifier for generating next lesson content based on their level",
    "chatPersona": "Personality adjustment for AI responses (more supportive, more challenging, etc.)"
  }},
  "inferredLearningStyle": {{
    "primary": "visual|auditory|kinesthetic|reading|unknown",
    "confidence": 0.0-1.0
  }}
}}"""


class LLMDifficultyClassifier(Classifier):
    """Production classifier: one JSON-mode call to the generative service."""

    def __init__(self, service: GenerativeTextService, config: AdaptiveConfig):
        self.service = service
        self.window = config.history_window
        self.temperature = config.effective_classification_temperature
        self.timeout = config.request_timeout

    async def classify(
        self,
        history: List[ConversationTurn],
        lesson: Optional[LessonContext] = None,
        module: Optional[ModuleContext] = None,
    ) -> ClassificationResult:
        user_turns = turns_by_role(history, Role.USER, self.window)
        assistant_turns = turns_by_role(history, Role.ASSISTANT, self.window)

        if not has_enough_evidence(history):
            logger.info(
                f"🧠 [DifficultyClassifier] Skipping - {len(user_turns)} user turn(s), "
                f"need {MIN_USER_TURNS}"
            )
            return ClassificationResult.insufficient_data()

        prompt = build_analysis_prompt(
            [turn.content for turn in user_turns],
            [turn.content for turn in assistant_turns],
            lesson,
            module,
        )

        start_time = time.time()
        logger.info(
            f"🧠 [DifficultyClassifier] Analyzing {len(user_turns)} user / "
            f"{len(assistant_turns)} assistant turns..."
        )
        try:
            payload = await self.service.complete(
                CLASSIFIER_SYSTEM_DIRECTIVE,
                [{"role": "user", "content": prompt}],
                temperature=self.temperature,
                timeout=self.timeout,
            )
            assessment = DifficultyAssessment.from_payload(payload)
        except GenerationError as e:
            elapsed = time.time() - start_time
            logger.error(
                f"❌ [DifficultyClassifier] Classification failed after {elapsed:.2f}s: "
                f"{type(e).__name__}: {e}"
            )
            return ClassificationResult.failure(ClassificationError(str(e), cause=e))
        except Exception as e:
            # Anything else from a service implementation is still not allowed to abort the turn
            elapsed = time.time() - start_time
            logger.exception(f"❌ [DifficultyClassifier] Unexpected error after {elapsed:.2f}s")
            return ClassificationResult.failure(ClassificationError(str(e), cause=e))

        elapsed = time.time() - start_time
        logger.info(
            f"✅ [DifficultyClassifier] Completed in {elapsed:.2f}s - level: "
            f"{assessment.current_level.value}, confidence: {assessment.confidence:.2f}, "
            f"adjustment: {assessment.adjust_difficulty.value}"
        )
        return ClassificationResult.success(assessment)


class StaticDifficultyClassifier(Classifier):
    """
    Deterministic classifier that never calls a service.

    Returns the configured assessment (or the default one) whenever there is
    enough evidence. Used in tests and when adaptive analysis is disabled.
    """

    def __init__(self, assessment: Optional[DifficultyAssessment] = None):
        self.assessment = assessment
        self.calls = 0

    async def classify(
        self,
        history: List[ConversationTurn],
        lesson: Optional[LessonContext] = None,
        module: Optional[ModuleContext] = None,
    ) -> ClassificationResult:
        self.calls += 1
        if not has_enough_evidence(history):
            return ClassificationResult.insufficient_data()
        if self.assessment is None:
            return ClassificationResult.insufficient_data()
        return ClassificationResult.success(self.assessment)
