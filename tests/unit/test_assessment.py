"""
Unit Tests for the Difficulty Assessment model

Tests payload validation, the canonical default and ClassificationResult.
"""

import copy

import pytest

from adaptive_sage_tutor.assessment import (
    AdjustDirection,
    ClassificationResult,
    ComprehensionLevel,
    DifficultyAssessment,
    INSUFFICIENT_DATA_INDICATOR,
    default_assessment,
)
from adaptive_sage_tutor.errors import AssessmentParseError, ClassificationError, MalformedResponseError
from adaptive_sage_tutor.llm_client import parse_json_object

from conftest import VALID_ASSESSMENT


class TestComprehensionLevel:

    def test_ordering(self):
        assert ComprehensionLevel.STRUGGLING < ComprehensionLevel.COMFORTABLE
        assert ComprehensionLevel.COMFORTABLE < ComprehensionLevel.ADVANCED
        assert ComprehensionLevel.ADVANCED < ComprehensionLevel.MASTERY
        assert ComprehensionLevel.MASTERY >= ComprehensionLevel.MASTERY
        assert sorted(ComprehensionLevel, reverse=True)[0] is ComprehensionLevel.MASTERY

    def test_parse_is_case_insensitive(self):
        assert ComprehensionLevel.parse(" Advanced ") is ComprehensionLevel.ADVANCED
        assert ComprehensionLevel.parse("MASTERY") is ComprehensionLevel.MASTERY

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            ComprehensionLevel.parse("expert")
        with pytest.raises(ValueError):
            ComprehensionLevel.parse(3)


class TestAssessmentFromPayload:
    """Test suite for DifficultyAssessment.from_payload."""

    @pytest.fixture
    def payload(self):
        return copy.deepcopy(VALID_ASSESSMENT)

    def test_valid_payload(self, payload):
        assessment = DifficultyAssessment.from_payload(payload)

        assert assessment.current_level is ComprehensionLevel.ADVANCED
        assert assessment.confidence == pytest.approx(0.82)
        assert assessment.adjust_difficulty is AdjustDirection.INCREASE
        assert assessment.recommendations.focus_areas == ("Positional encodings",)
        assert assessment.adaptive_prompts.chat_persona == "More challenging"
        assert assessment.inferred_learning_style.primary == "reading"

    def test_to_dict_uses_wire_names(self, payload):
        data = DifficultyAssessment.from_payload(payload).to_dict()

        assert data["currentLevel"] == "advanced"
        assert data["recommendations"]["adjustDifficulty"] == "increase"
        assert data["adaptivePrompts"]["nextLesson"] == payload["adaptivePrompts"]["nextLesson"]
        assert DifficultyAssessment.from_payload(data) == DifficultyAssessment.from_payload(payload)

    def test_missing_level_rejected(self, payload):
        del payload["currentLevel"]
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_unknown_level_rejected(self, payload):
        payload["currentLevel"] = "genius"
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_missing_confidence_rejected(self, payload):
        del payload["confidence"]
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_non_numeric_confidence_rejected(self, payload):
        payload["confidence"] = "very"
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    @pytest.mark.parametrize("raw, expected", [(1.7, 1.0), (-0.2, 0.0), (85, 1.0), (0.0, 0.0)])
    def test_confidence_clamped(self, payload, raw, expected):
        payload["confidence"] = raw
        assert DifficultyAssessment.from_payload(payload).confidence == expected

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_confidence_rejected(self, payload, raw):
        """NaN must not clamp to full confidence."""
        payload["confidence"] = raw
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_nan_literal_from_model_output_rejected(self):
        payload = parse_json_object('{"currentLevel": "struggling", "confidence": NaN}')
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_non_finite_learning_style_confidence_rejected(self, payload):
        payload["inferredLearningStyle"]["confidence"] = float("nan")
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_invalid_adjustment_rejected(self, payload):
        payload["recommendations"]["adjustDifficulty"] = "sideways"
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_optional_sections_default(self):
        assessment = DifficultyAssessment.from_payload({"currentLevel": "struggling", "confidence": 0.4})

        assert assessment.adjust_difficulty is AdjustDirection.MAINTAIN
        assert assessment.indicators == ()
        assert assessment.recommendations.suggested_content == ()
        assert assessment.inferred_learning_style.primary == "unknown"

    def test_null_sections_treated_as_empty(self, payload):
        payload["recommendations"] = None
        payload["indicators"] = None
        assessment = DifficultyAssessment.from_payload(payload)
        assert assessment.adjust_difficulty is AdjustDirection.MAINTAIN
        assert assessment.indicators == ()

    @pytest.mark.parametrize("payload", [None, [], "advanced", 0.5])
    def test_non_object_rejected(self, payload):
        with pytest.raises(AssessmentParseError):
            DifficultyAssessment.from_payload(payload)

    def test_parse_error_is_malformed_response(self):
        """Callers catching GenerationError also catch schema failures."""
        assert issubclass(AssessmentParseError, MalformedResponseError)

    def test_direct_construction_validates_confidence(self):
        with pytest.raises(ValueError):
            DifficultyAssessment(current_level=ComprehensionLevel.ADVANCED, confidence=1.5)


class TestDefaultAssessment:

    def test_canonical_values(self):
        assessment = default_assessment()

        assert assessment.current_level is ComprehensionLevel.COMFORTABLE
        assert assessment.confidence == 0.5
        assert assessment.adjust_difficulty is AdjustDirection.MAINTAIN
        assert assessment.indicators == (INSUFFICIENT_DATA_INDICATOR,)
        assert assessment.recommendations.suggested_content == ("Continue with current curriculum",)
        assert assessment.recommendations.focus_areas == ("General comprehension",)
        assert assessment.adaptive_prompts.next_lesson == "Standard difficulty level"
        assert assessment.adaptive_prompts.chat_persona == "Supportive and encouraging"

    def test_default_is_stable(self):
        assert default_assessment() == default_assessment()


class TestClassificationResult:

    def test_success(self):
        assessment = DifficultyAssessment.from_payload(VALID_ASSESSMENT)
        result = ClassificationResult.success(assessment)

        assert result.ok
        assert result.or_default() is assessment

    def test_insufficient_data_is_not_an_error(self):
        result = ClassificationResult.insufficient_data()

        assert not result.ok
        assert result.error is None
        assert result.or_default() == default_assessment()

    def test_failure_carries_cause(self):
        cause = TimeoutError("slow")
        result = ClassificationResult.failure(ClassificationError("timed out", cause=cause))

        assert not result.ok
        assert result.error.cause is cause
        assert result.or_default() == default_assessment()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
