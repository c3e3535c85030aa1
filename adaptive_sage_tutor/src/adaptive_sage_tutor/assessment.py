"""
Difficulty Assessment Data Model

Value objects produced by one difficulty-classification pass, plus the
validation layer that turns an LLM JSON payload into a trusted assessment.

Wire shape (camelCase, as requested from the model and returned to clients):
{
    "currentLevel": "struggling|comfortable|advanced|mastery",
    "confidence": 0.0-1.0,
    "indicators": ["..."],
    "recommendations": {
        "adjustDifficulty": "increase|decrease|maintain",
        "suggestedContent": ["..."],
        "focusAreas": ["..."]
    },
    "adaptivePrompts": {"nextLesson": "...", "chatPersona": "..."},
    "inferredLearningStyle": {"primary": "...", "confidence": 0.0-1.0}
}
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from adaptive_sage_tutor.errors import AssessmentParseError, ClassificationError


class ComprehensionLevel(str, Enum):
    """Inferred comprehension, ordered struggling < comfortable < advanced < mastery."""
    STRUGGLING = "struggling"
    COMFORTABLE = "comfortable"
    ADVANCED = "advanced"
    MASTERY = "mastery"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, ComprehensionLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, ComprehensionLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, ComprehensionLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, ComprehensionLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: Any) -> "ComprehensionLevel":
        """Parse a level name case-insensitively. Raises ValueError if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for level in cls:
                if level.value == normalized:
                    return level
        raise ValueError(f"Unknown comprehension level: {value!r}")


_LEVEL_ORDER = list(ComprehensionLevel)


class AdjustDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"

    @classmethod
    def parse(cls, value: Any) -> "AdjustDirection":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.MAINTAIN
        if isinstance(value, str):
            normalized = value.strip().lower()
            for direction in cls:
                if direction.value == normalized:
                    return direction
        raise ValueError(f"Unknown difficulty adjustment: {value!r}")


def _clamp_unit(value: float) -> float:
    number = float(value)
    # NaN would survive max/min as 1.0
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"confidence must be a finite number, got {value!r}")
    return max(0.0, min(1.0, number))


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        raise ValueError("expected a list of strings")
    return [str(item) for item in value if item is not None]


# ==================== Payload validation ====================

class _RecommendationsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    adjust_difficulty: AdjustDirection = Field(default=AdjustDirection.MAINTAIN, alias="adjustDifficulty")
    suggested_content: List[str] = Field(default_factory=list, alias="suggestedContent")
    focus_areas: List[str] = Field(default_factory=list, alias="focusAreas")

    @field_validator("adjust_difficulty", mode="before")
    @classmethod
    def _parse_direction(cls, value):
        return AdjustDirection.parse(value)

    @field_validator("suggested_content", "focus_areas", mode="before")
    @classmethod
    def _coerce_lists(cls, value):
        return _string_list(value)


class _AdaptivePromptsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    next_lesson: str = Field(default="", alias="nextLesson")
    chat_persona: str = Field(default="", alias="chatPersona")

    @field_validator("next_lesson", "chat_persona", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return "" if value is None else str(value)


class _LearningStylePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    primary: str = "unknown"
    confidence: float = 0.0

    @field_validator("primary", mode="before")
    @classmethod
    def _coerce_primary(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "unknown"
        return str(value).strip().lower()

    @field_validator("confidence")
    @classmethod
    def _clamp(cls, value):
        return _clamp_unit(value)


class AssessmentPayload(BaseModel):
    """Validated form of the classifier's JSON answer."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_level: ComprehensionLevel = Field(alias="currentLevel")
    confidence: float
    indicators: List[str] = Field(default_factory=list)
    recommendations: _RecommendationsPayload = Field(default_factory=_RecommendationsPayload)
    adaptive_prompts: _AdaptivePromptsPayload = Field(
        default_factory=_AdaptivePromptsPayload, alias="adaptivePrompts"
    )
    inferred_learning_style: _LearningStylePayload = Field(
        default_factory=_LearningStylePayload, alias="inferredLearningStyle"
    )

    @field_validator("current_level", mode="before")
    @classmethod
    def _parse_level(cls, value):
        return ComprehensionLevel.parse(value)

    @field_validator("confidence")
    @classmethod
    def _clamp(cls, value):
        # Models occasionally answer 85 or 1.2; keep the trust signal in range
        return _clamp_unit(value)

    @field_validator("indicators", mode="before")
    @classmethod
    def _coerce_indicators(cls, value):
        return _string_list(value)

    @field_validator("recommendations", "adaptive_prompts", "inferred_learning_style", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return {} if value is None else value


# ==================== Value objects ====================

@dataclass(frozen=True)
class AssessmentRecommendations:
    adjust_difficulty: AdjustDirection = AdjustDirection.MAINTAIN
    suggested_content: Tuple[str, ...] = ()
    focus_areas: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AdaptivePrompts:
    next_lesson: str = ""
    chat_persona: str = ""


@dataclass(frozen=True)
class LearningStyle:
    """Advisory only; nothing branches on it."""
    primary: str = "unknown"
    confidence: float = 0.0


@dataclass(frozen=True)
class DifficultyAssessment:
    """Structured output of one difficulty-classification pass."""
    current_level: ComprehensionLevel
    confidence: float
    indicators: Tuple[str, ...] = ()
    recommendations: AssessmentRecommendations = field(default_factory=AssessmentRecommendations)
    adaptive_prompts: AdaptivePrompts = field(default_factory=AdaptivePrompts)
    inferred_learning_style: LearningStyle = field(default_factory=LearningStyle)

    def __post_init__(self):
        if not isinstance(self.current_level, ComprehensionLevel):
            raise ValueError(f"current_level must be a ComprehensionLevel, got {self.current_level!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def adjust_difficulty(self) -> AdjustDirection:
        return self.recommendations.adjust_difficulty

    @classmethod
    def from_payload(cls, payload: Any) -> "DifficultyAssessment":
        """
        Validate a JSON payload and build an assessment from it.

        Raises:
            AssessmentParseError: if the payload does not fit the shape
        """
        if not isinstance(payload, dict):
            raise AssessmentParseError(
                f"Assessment payload must be a JSON object, got {type(payload).__name__}"
            )
        try:
            parsed = AssessmentPayload.model_validate(payload)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise AssessmentParseError(
                f"Assessment payload failed validation ({', '.join(fields)})"
            ) from e

        return cls(
            current_level=parsed.current_level,
            confidence=parsed.confidence,
            indicators=tuple(parsed.indicators),
            recommendations=AssessmentRecommendations(
                adjust_difficulty=parsed.recommendations.adjust_difficulty,
                suggested_content=tuple(parsed.recommendations.suggested_content),
                focus_areas=tuple(parsed.recommendations.focus_areas),
            ),
            adaptive_prompts=AdaptivePrompts(
                next_lesson=parsed.adaptive_prompts.next_lesson,
                chat_persona=parsed.adaptive_prompts.chat_persona,
            ),
            inferred_learning_style=LearningStyle(
                primary=parsed.inferred_learning_style.primary,
                confidence=parsed.inferred_learning_style.confidence,
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentLevel": self.current_level.value,
            "confidence": self.confidence,
            "indicators": list(self.indicators),
            "recommendations": {
                "adjustDifficulty": self.recommendations.adjust_difficulty.value,
                "suggestedContent": list(self.recommendations.suggested_content),
                "focusAreas": list(self.recommendations.focus_areas),
            },
            "adaptivePrompts": {
                "nextLesson": self.adaptive_prompts.next_lesson,
                "chatPersona": self.adaptive_prompts.chat_persona,
            },
            "inferredLearningStyle": {
                "primary": self.inferred_learning_style.primary,
                "confidence": self.inferred_learning_style.confidence,
            },
        }


INSUFFICIENT_DATA_INDICATOR = "Insufficient data for analysis"


def default_assessment() -> DifficultyAssessment:
    """Neutral low-confidence prior used whenever inference is impossible."""
    return DifficultyAssessment(
        current_level=ComprehensionLevel.COMFORTABLE,
        confidence=0.5,
        indicators=(INSUFFICIENT_DATA_INDICATOR,),
        recommendations=AssessmentRecommendations(
            adjust_difficulty=AdjustDirection.MAINTAIN,
            suggested_content=("Continue with current curriculum",),
            focus_areas=("General comprehension",),
        ),
        adaptive_prompts=AdaptivePrompts(
            next_lesson="Standard difficulty level",
            chat_persona="Supportive and encouraging",
        ),
        inferred_learning_style=LearningStyle(),
    )


# ==================== Classification result ====================

STATUS_OK = "ok"
STATUS_INSUFFICIENT_DATA = "insufficient_data"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of one classification attempt.

    Exactly one of three states: a validated assessment, insufficient data
    (not an error), or a failure carrying a ClassificationError. Callers
    collapse it with or_default(), which substitutes the canonical default
    assessment for the last two.
    """
    status: str
    assessment: Optional[DifficultyAssessment] = None
    error: Optional[ClassificationError] = None

    @classmethod
    def success(cls, assessment: DifficultyAssessment) -> "ClassificationResult":
        return cls(status=STATUS_OK, assessment=assessment)

    @classmethod
    def insufficient_data(cls) -> "ClassificationResult":
        return cls(status=STATUS_INSUFFICIENT_DATA)

    @classmethod
    def failure(cls, error: ClassificationError) -> "ClassificationResult":
        return cls(status=STATUS_FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK and self.assessment is not None

    def or_default(self) -> DifficultyAssessment:
        if self.ok:
            return self.assessment
        return default_assessment()
