"""
Conversation Store

Append-only, per-(user, learning path) log of chat turns.

Two backends:
- InMemoryConversationStore: process-local, used in tests and when no
  database is configured
- SupabaseConversationStore: `chat_messages` table, ordered by created_at
"""

import asyncio
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One chat message. Immutable once appended."""
    user_id: str
    path_id: Optional[str]
    role: Role
    content: str
    lesson_id: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, str]:
        """Chat-completion style message."""
        return {"role": self.role.value, "content": self.content}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "path_id": self.path_id,
            "lesson_id": self.lesson_id,
            "role": self.role.value,
            "content": self.content,
            "context": self.context,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ConversationTurn":
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=str(row["id"]) if row.get("id") else str(uuid.uuid4()),
            user_id=row["user_id"],
            path_id=row.get("path_id"),
            lesson_id=row.get("lesson_id"),
            role=Role(row["role"]),
            content=row.get("content") or "",
            context=row.get("context"),
            created_at=created_at or datetime.now(timezone.utc),
        )


def turns_by_role(turns: List[ConversationTurn], role: Role, window: Optional[int] = None) -> List[ConversationTurn]:
    """Turns of one role in creation order, keeping only the most recent `window`."""
    selected = [turn for turn in turns if turn.role == role]
    if window is not None:
        selected = selected[-window:] if window > 0 else []
    return selected


class ConversationStore(ABC):
    """Read/append contract the tutor depends on."""

    @abstractmethod
    async def append(self, turn: ConversationTurn) -> ConversationTurn:
        """Append a turn and return it as stored."""

    @abstractmethod
    async def get_turns(self, user_id: str, path_id: Optional[str]) -> List[ConversationTurn]:
        """All turns for (user, path) in creation order."""


class InMemoryConversationStore(ConversationStore):
    """
    Process-local store.

    Turns are kept in one append-only list behind a lock; readers always get
    a fresh list so a concurrent append never changes what they iterate.
    """

    def __init__(self):
        self._turns: List[ConversationTurn] = []
        self._lock = threading.Lock()

    async def append(self, turn: ConversationTurn) -> ConversationTurn:
        with self._lock:
            self._turns.append(turn)
        return turn

    async def get_turns(self, user_id: str, path_id: Optional[str]) -> List[ConversationTurn]:
        with self._lock:
            snapshot: Tuple[ConversationTurn, ...] = tuple(self._turns)
        return [
            turn for turn in snapshot
            if turn.user_id == user_id and (path_id is None or turn.path_id == path_id)
        ]


class SupabaseConversationStore(ConversationStore):
    """Conversation log persisted in Supabase."""

    def __init__(self, supabase_client, table: str = "chat_messages"):
        self.supabase = supabase_client
        self.table = table

    async def append(self, turn: ConversationTurn) -> ConversationTurn:
        row = turn.to_dict()
        result = await asyncio.to_thread(
            lambda: self.supabase.table(self.table).insert(row).execute()
        )
        if result.data:
            stored = result.data[0]
            # Database may assign its own id/timestamp
            return replace(
                turn,
                id=str(stored.get("id") or turn.id),
                created_at=ConversationTurn.from_row({**row, **stored}).created_at,
            )
        logger.warning(f"⚠️ [ConversationStore] Insert returned no data for turn {turn.id}")
        return turn

    async def get_turns(self, user_id: str, path_id: Optional[str]) -> List[ConversationTurn]:
        def _query():
            query = self.supabase.table(self.table).select('*').eq('user_id', user_id)
            if path_id is not None:
                query = query.eq('path_id', path_id)
            return query.order('created_at', desc=False).execute()

        result = await asyncio.to_thread(_query)
        return [ConversationTurn.from_row(row) for row in (result.data or [])]
