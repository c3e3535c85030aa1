"""
Shared fixtures: path setup, a scripted generative service and an
in-memory Supabase stand-in.
"""

import os
import sys
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "adaptive_sage_tutor", "src"))
sys.path.insert(0, os.path.join(project_root, "backend"))

from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.conversation import ConversationTurn, Role
from adaptive_sage_tutor.difficulty_classifier import CLASSIFIER_SYSTEM_DIRECTIVE
from adaptive_sage_tutor.llm_client import GenerativeTextService
from adaptive_sage_tutor.recommendations import RECOMMENDER_SYSTEM_DIRECTIVE


VALID_ASSESSMENT = {
    "currentLevel": "advanced",
    "confidence": 0.82,
    "indicators": ["Asks about edge cases", "Connects concepts across lessons"],
    "recommendations": {
        "adjustDifficulty": "increase",
        "suggestedContent": ["Attention variants"],
        "focusAreas": ["Positional encodings"],
    },
    "adaptivePrompts": {
        "nextLesson": "Introduce multi-head attention math",
        "chatPersona": "More challenging",
    },
    "inferredLearningStyle": {"primary": "reading", "confidence": 0.6},
}

VALID_RECOMMENDATIONS = {
    "recommendedActions": ["Offer a derivation exercise"],
    "nextLessonModifications": ["Skip the recap section"],
    "chatSuggestions": ["Can you explain why scaling by sqrt(d_k) helps?"],
}

VALID_REPLY = {
    "message": "Great question! Let's look at how attention weights are computed.",
    "suggestions": ["Show me an example", "Why softmax?"],
    "contextualHints": ["This builds on the dot-product lesson"],
}


class FakeGenerativeService(GenerativeTextService):
    """
    Scripted GenerativeTextService.

    Calls are routed by system directive to "classify", "recommend" or
    "reply". Each entry in `responses` is a dict to return, an exception to
    raise, or a list of those consumed in order.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses = {
            "classify": VALID_ASSESSMENT,
            "recommend": VALID_RECOMMENDATIONS,
            "reply": VALID_REPLY,
        }
        if responses:
            self.responses.update(responses)
        self.calls: List[Dict[str, Any]] = []

    @staticmethod
    def _kind(system_directive: str) -> str:
        if system_directive == CLASSIFIER_SYSTEM_DIRECTIVE:
            return "classify"
        if system_directive == RECOMMENDER_SYSTEM_DIRECTIVE:
            return "recommend"
        return "reply"

    def calls_for(self, kind: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["kind"] == kind]

    async def complete(self, system_directive, messages, temperature, timeout=None, max_tokens=None):
        kind = self._kind(system_directive)
        self.calls.append({
            "kind": kind,
            "system_directive": system_directive,
            "messages": list(messages),
            "temperature": temperature,
            "timeout": timeout,
        })
        response = self.responses[kind]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class _FakeQuery:
    """Chainable subset of the supabase-py query builder."""

    def __init__(self, table: "FakeSupabaseTable"):
        self.table = table
        self.filters = []
        self.order_key = None
        self.order_desc = False
        self.limit_count = None
        self.pending_insert = None

    def select(self, *_):
        return self

    def insert(self, row):
        self.pending_insert = dict(row)
        return self

    def eq(self, key, value):
        self.filters.append(lambda row: row.get(key) == value)
        return self

    def is_(self, key, value):
        assert value == "null"
        self.filters.append(lambda row: row.get(key) is None)
        return self

    def order(self, key, desc=False):
        self.order_key = key
        self.order_desc = desc
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def execute(self):
        if self.table.fail:
            raise RuntimeError("database unavailable")
        if self.pending_insert is not None:
            self.table.rows.append(self.pending_insert)
            return SimpleNamespace(data=[self.pending_insert])
        rows = [row for row in self.table.rows if all(f(row) for f in self.filters)]
        if self.order_key:
            rows.sort(key=lambda row: row[self.order_key], reverse=self.order_desc)
        if self.limit_count is not None:
            rows = rows[:self.limit_count]
        return SimpleNamespace(data=rows)


class FakeSupabaseTable:
    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.fail = False


class FakeSupabaseClient:
    def __init__(self):
        self.tables: Dict[str, FakeSupabaseTable] = {}

    def table(self, name: str) -> _FakeQuery:
        return _FakeQuery(self.tables.setdefault(name, FakeSupabaseTable()))


def build_history(user_messages: List[str], user_id: str = "user-1", path_id: Optional[str] = "path-1") -> List[ConversationTurn]:
    """Alternating user/assistant turns, one assistant reply per user message."""
    turns = []
    for i, text in enumerate(user_messages):
        turns.append(ConversationTurn(user_id=user_id, path_id=path_id, role=Role.USER, content=text))
        turns.append(ConversationTurn(
            user_id=user_id, path_id=path_id, role=Role.ASSISTANT, content=f"Reply {i + 1}"
        ))
    return turns


@pytest.fixture
def config():
    """Deterministic config; never reads the environment."""
    return AdaptiveConfig(openai_api_key="test-key")


@pytest.fixture
def fake_service():
    return FakeGenerativeService()


@pytest.fixture
def fake_supabase():
    return FakeSupabaseClient()


@pytest.fixture
def history_factory():
    return build_history
