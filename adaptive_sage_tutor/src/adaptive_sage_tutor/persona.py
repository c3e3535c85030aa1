"""
Tutor persona selection.

Maps an assessment's comprehension level onto the steering directive the
chat reply generator receives as its system persona.
"""

from typing import Optional

from adaptive_sage_tutor.assessment import ComprehensionLevel, DifficultyAssessment

BASE_PERSONA = "You are Sage's AI tutor. You're encouraging, adaptive, and wise."

LEVEL_MODIFIERS = {
    ComprehensionLevel.STRUGGLING: (
        "The student is struggling, so be extra patient and supportive. Break down "
        "concepts into smaller steps, use more examples, and offer frequent "
        "encouragement. Ask if they need clarification often."
    ),
    ComprehensionLevel.COMFORTABLE: (
        "The student is learning well at the current pace. Maintain your supportive "
        "approach while occasionally introducing slightly more challenging concepts "
        "to keep them engaged."
    ),
    ComprehensionLevel.ADVANCED: (
        "The student is grasping concepts quickly. Feel free to introduce more "
        "advanced topics, ask thought-provoking questions, and challenge them with "
        "deeper applications of the material."
    ),
    ComprehensionLevel.MASTERY: (
        "The student has mastered the current material. Focus on advanced "
        "applications, encourage them to teach concepts back to you, and suggest "
        "extensions or related advanced topics."
    ),
}


def select_persona(assessment: Optional[DifficultyAssessment]) -> str:
    """Persona directive for an assessment; the bare base persona when there is none."""
    if assessment is None:
        return BASE_PERSONA
    level = getattr(assessment, "current_level", None)
    if not isinstance(level, ComprehensionLevel):
        return BASE_PERSONA
    modifier = LEVEL_MODIFIERS.get(level)
    if not modifier:
        return BASE_PERSONA
    return f"{BASE_PERSONA} {modifier}"
