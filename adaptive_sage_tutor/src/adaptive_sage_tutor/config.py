"""
Adaptive Tutor Configuration

Settings are read from the environment (and a local .env file) once at
startup and passed to each component at construction.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Classification is a labelling task; higher temperatures are capped to this.
MAX_CLASSIFICATION_TEMPERATURE = 0.3

TRIGGER_SCOPES = ("conversation", "user")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AdaptiveConfig:
    """Credentials, timeouts and tuning constants for the adaptive tutor."""
    openai_api_key: Optional[str] = None
    model: str = "gpt-4o"
    request_timeout: float = 30.0  # seconds, per service call
    classification_temperature: float = MAX_CLASSIFICATION_TEMPERATURE
    recommendation_temperature: float = 0.7
    reply_temperature: float = 0.8
    # Trigger: analyse when count >= min_turns and count % interval == 0
    analysis_min_turns: int = 3
    analysis_interval: int = 5
    trigger_scope: str = "conversation"  # "conversation" or "user"
    # Turns of each role the classifier looks at
    history_window: int = 10
    adaptive_enabled: bool = True

    def __post_init__(self):
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.analysis_min_turns < 0:
            raise ValueError("analysis_min_turns must be non-negative")
        if self.analysis_interval < 1:
            raise ValueError("analysis_interval must be at least 1")
        if self.history_window < 1:
            raise ValueError("history_window must be at least 1")
        if self.trigger_scope not in TRIGGER_SCOPES:
            raise ValueError(
                f"trigger_scope must be one of {TRIGGER_SCOPES}, got {self.trigger_scope!r}"
            )

    @property
    def effective_classification_temperature(self) -> float:
        return max(0.0, min(self.classification_temperature, MAX_CLASSIFICATION_TEMPERATURE))

    @classmethod
    def from_env(cls) -> "AdaptiveConfig":
        """Build a config from environment variables (loads .env first)."""
        load_dotenv()
        load_dotenv('../.env')  # Also try parent directory

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("OPENAI_MODEL") or "gpt-4o",
            request_timeout=_env_float("ADAPTIVE_REQUEST_TIMEOUT", 30.0),
            classification_temperature=_env_float(
                "ADAPTIVE_CLASSIFY_TEMPERATURE", MAX_CLASSIFICATION_TEMPERATURE
            ),
            recommendation_temperature=_env_float("ADAPTIVE_RECOMMEND_TEMPERATURE", 0.7),
            reply_temperature=_env_float("ADAPTIVE_REPLY_TEMPERATURE", 0.8),
            analysis_min_turns=_env_int("ADAPTIVE_MIN_TURNS", 3),
            analysis_interval=_env_int("ADAPTIVE_INTERVAL", 5),
            trigger_scope=(os.getenv("ADAPTIVE_TRIGGER_SCOPE") or "conversation").strip().lower(),
            history_window=_env_int("ADAPTIVE_HISTORY_WINDOW", 10),
            adaptive_enabled=_env_bool("ADAPTIVE_ENABLED", True),
        )
