"""
Unit Tests for persona selection
"""

from dataclasses import replace
from types import SimpleNamespace

import pytest

from adaptive_sage_tutor.assessment import ComprehensionLevel, default_assessment
from adaptive_sage_tutor.persona import BASE_PERSONA, LEVEL_MODIFIERS, select_persona


def assessment_at(level: ComprehensionLevel):
    return replace(default_assessment(), current_level=level)


class TestSelectPersona:
    """Test suite for select_persona."""

    @pytest.mark.parametrize("level", list(ComprehensionLevel))
    def test_every_level_has_a_persona(self, level):
        persona = select_persona(assessment_at(level))
        assert persona.startswith(BASE_PERSONA)
        assert LEVEL_MODIFIERS[level] in persona

    def test_personas_are_distinct(self):
        personas = {select_persona(assessment_at(level)) for level in ComprehensionLevel}
        assert len(personas) == len(ComprehensionLevel)

    def test_idempotent(self):
        assessment = assessment_at(ComprehensionLevel.STRUGGLING)
        assert select_persona(assessment) == select_persona(assessment)

    def test_no_assessment_is_base_persona(self):
        assert select_persona(None) == BASE_PERSONA

    @pytest.mark.parametrize("level", ["expert", "", 3, None, ["advanced"], {"level": "mastery"}])
    def test_unrecognized_level_is_base_persona(self, level):
        assert select_persona(SimpleNamespace(current_level=level)) == BASE_PERSONA

    def test_object_without_level_is_base_persona(self):
        assert select_persona(SimpleNamespace()) == BASE_PERSONA

    def test_struggling_is_patient(self):
        assert "extra patient" in select_persona(assessment_at(ComprehensionLevel.STRUGGLING))

    def test_mastery_asks_to_teach_back(self):
        assert "teach concepts back" in select_persona(assessment_at(ComprehensionLevel.MASTERY))

    def test_only_level_matters(self):
        """Confidence and the model's own persona hint do not change the directive."""
        base = assessment_at(ComprehensionLevel.ADVANCED)
        other = replace(base, confidence=0.1)
        assert select_persona(base) == select_persona(other)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
