"""
Adaptive Recommendations

Turns a difficulty assessment into concrete next actions for the learner,
the next lesson, and the chat. Generated by the LLM; falls back to a fixed
neutral set on any failure.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from adaptive_sage_tutor.assessment import DifficultyAssessment
from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.learning_context import LessonContext, ProgressContext
from adaptive_sage_tutor.llm_client import GenerativeTextService

logger = logging.getLogger(__name__)

RECOMMENDER_SYSTEM_DIRECTIVE = (
    "You are an adaptive learning specialist creating personalized educational experiences."
)

_FIELDS = (
    ("recommendedActions", "recommended_actions"),
    ("nextLessonModifications", "next_lesson_modifications"),
    ("chatSuggestions", "chat_suggestions"),
)


@dataclass(frozen=True)
class AdaptiveRecommendations:
    recommended_actions: Tuple[str, ...]
    next_lesson_modifications: Tuple[str, ...]
    chat_suggestions: Tuple[str, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> "AdaptiveRecommendations":
        """Raises ValueError unless all three fields are lists of strings."""
        if not isinstance(payload, dict):
            raise ValueError("recommendations payload must be a JSON object")
        values = {}
        for key, attr in _FIELDS:
            items = payload.get(key)
            if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
                raise ValueError(f"'{key}' must be a list of strings")
            values[attr] = tuple(items)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendedActions": list(self.recommended_actions),
            "nextLessonModifications": list(self.next_lesson_modifications),
            "chatSuggestions": list(self.chat_suggestions),
        }


DEFAULT_RECOMMENDATIONS = AdaptiveRecommendations(
    recommended_actions=("Continue with current pace",),
    next_lesson_modifications=("No modifications needed",),
    chat_suggestions=("How are you finding this lesson?",),
)


def build_recommendation_prompt(
    assessment: DifficultyAssessment,
    lesson: Optional[LessonContext],
    progress: Optional[ProgressContext],
) -> str:
    focus_areas = ", ".join(assessment.recommendations.focus_areas) or "None identified"
    progress = progress or ProgressContext()
    return f"""Based on this difficulty analysis, generate adaptive learning recommendations:

ANALYSIS:
- Current Level: {assessment.current_level.value}
- Confidence: {assessment.confidence}
- Adjustment Needed: {assessment.adjust_difficulty.value}
- Focus Areas: {focus_areas}

CURRENT CONTEXT:
- Lesson: {lesson.title if lesson else "Unknown"}
- Progress: {progress.describe()}

Generate specific, actionable recommendations in JSON format:
{{
  "recommendedActions": [
    "Immediate actions to help the student",
    "Content adjustments to make"
  ],
  "nextLessonModifications": [
    "How to modify the next lesson for their level",
    "Additional exercises or simplified explanations"
  ],
  "chatSuggestions": [
    "Suggested conversation starters",
    "Questions to assess understanding"
  ]
}}"""


class RecommendationEngine:
    """LLM-backed recommendation generator with a fixed fallback."""

    def __init__(self, service: GenerativeTextService, config: AdaptiveConfig):
        self.service = service
        self.temperature = config.recommendation_temperature
        self.timeout = config.request_timeout

    async def recommend(
        self,
        assessment: DifficultyAssessment,
        lesson: Optional[LessonContext] = None,
        progress: Optional[ProgressContext] = None,
    ) -> AdaptiveRecommendations:
        """Never raises; returns DEFAULT_RECOMMENDATIONS on any failure."""
        start_time = time.time()
        logger.info(f"🎯 [RecommendationEngine] Generating recommendations for level: {assessment.current_level.value}")
        try:
            prompt = build_recommendation_prompt(assessment, lesson, progress)
            payload = await self.service.complete(
                RECOMMENDER_SYSTEM_DIRECTIVE,
                [{"role": "user", "content": prompt}],
                temperature=self.temperature,
                timeout=self.timeout,
            )
            recommendations = AdaptiveRecommendations.from_payload(payload)
        except Exception as e:
            elapsed = time.time() - start_time
            logger.error(
                f"❌ [RecommendationEngine] Error after {elapsed:.2f}s, using defaults: "
                f"{type(e).__name__}: {e}"
            )
            return DEFAULT_RECOMMENDATIONS

        elapsed = time.time() - start_time
        logger.info(
            f"✅ [RecommendationEngine] Completed in {elapsed:.2f}s "
            f"({len(recommendations.recommended_actions)} actions)"
        )
        return recommendations
