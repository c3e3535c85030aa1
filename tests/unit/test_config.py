"""
Unit Tests for AdaptiveConfig
"""

import pytest

from adaptive_sage_tutor.config import AdaptiveConfig, MAX_CLASSIFICATION_TEMPERATURE

ENV_VARS = [
    "OPENAI_API_KEY", "OPENAI_MODEL", "ADAPTIVE_REQUEST_TIMEOUT",
    "ADAPTIVE_CLASSIFY_TEMPERATURE", "ADAPTIVE_RECOMMEND_TEMPERATURE",
    "ADAPTIVE_REPLY_TEMPERATURE", "ADAPTIVE_MIN_TURNS", "ADAPTIVE_INTERVAL",
    "ADAPTIVE_TRIGGER_SCOPE", "ADAPTIVE_HISTORY_WINDOW", "ADAPTIVE_ENABLED",
]


@pytest.fixture
def clean_env(monkeypatch):
    # Empty values count as unset, and load_dotenv never overrides existing vars
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
    return monkeypatch


class TestAdaptiveConfig:

    def test_defaults(self):
        config = AdaptiveConfig()

        assert config.model == "gpt-4o"
        assert config.analysis_min_turns == 3
        assert config.analysis_interval == 5
        assert config.trigger_scope == "conversation"
        assert config.history_window == 10
        assert config.request_timeout == 30.0
        assert config.adaptive_enabled is True

    def test_from_env(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("ADAPTIVE_INTERVAL", "4")
        clean_env.setenv("ADAPTIVE_TRIGGER_SCOPE", "User")
        clean_env.setenv("ADAPTIVE_ENABLED", "false")
        clean_env.setenv("ADAPTIVE_REQUEST_TIMEOUT", "12.5")

        config = AdaptiveConfig.from_env()

        assert config.openai_api_key == "sk-test"
        assert config.analysis_interval == 4
        assert config.trigger_scope == "user"
        assert config.adaptive_enabled is False
        assert config.request_timeout == 12.5

    def test_from_env_blank_values_use_defaults(self, clean_env):
        config = AdaptiveConfig.from_env()
        assert config.analysis_min_turns == 3
        assert config.adaptive_enabled is True

    def test_non_numeric_env_rejected(self, clean_env):
        clean_env.setenv("ADAPTIVE_MIN_TURNS", "three")
        with pytest.raises(ValueError, match="ADAPTIVE_MIN_TURNS"):
            AdaptiveConfig.from_env()

    @pytest.mark.parametrize("overrides", [
        {"request_timeout": 0},
        {"analysis_interval": 0},
        {"analysis_min_turns": -1},
        {"history_window": 0},
        {"trigger_scope": "session"},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            AdaptiveConfig(**overrides)

    def test_classification_temperature_capped(self):
        assert AdaptiveConfig(classification_temperature=0.9).effective_classification_temperature == MAX_CLASSIFICATION_TEMPERATURE
        assert AdaptiveConfig(classification_temperature=0.1).effective_classification_temperature == 0.1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
