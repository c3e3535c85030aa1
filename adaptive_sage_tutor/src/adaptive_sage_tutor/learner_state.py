"""
Learner State Snapshots

Every triggered analysis is persisted as an immutable, timestamped snapshot
keyed by user, learning path and lesson. Snapshots form an append-only log
ordered by creation time; the latest one per (user, path) is what the
learner-state endpoints and any downstream lesson generator read.

Persistence failures are logged and swallowed: a lost snapshot must never
fail the learner's chat turn.
"""

import asyncio
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from adaptive_sage_tutor.assessment import DifficultyAssessment
from adaptive_sage_tutor.errors import AssessmentParseError, SnapshotPersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LearnerStateSnapshot:
    """Persisted copy of one DifficultyAssessment."""
    user_id: str
    path_id: Optional[str]
    lesson_id: Optional[str]
    assessment: DifficultyAssessment
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "path_id": self.path_id,
            "lesson_id": self.lesson_id,
            "current_level": self.assessment.current_level.value,
            "confidence": self.assessment.confidence,
            "adjust_difficulty": self.assessment.adjust_difficulty.value,
            "assessment": self.assessment.to_dict(),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "LearnerStateSnapshot":
        """
        Rebuild a snapshot from a stored row.

        Raises:
            AssessmentParseError: if the stored assessment no longer validates
        """
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=str(row.get("id") or uuid.uuid4()),
            user_id=row["user_id"],
            path_id=row.get("path_id"),
            lesson_id=row.get("lesson_id"),
            assessment=DifficultyAssessment.from_payload(row.get("assessment")),
            created_at=created_at or datetime.now(timezone.utc),
        )


class SnapshotRecorder(ABC):
    """Append-only learner-state log."""

    async def record(
        self,
        user_id: str,
        path_id: Optional[str],
        lesson_id: Optional[str],
        assessment: DifficultyAssessment,
    ) -> Optional[LearnerStateSnapshot]:
        """
        Persist an assessment as a new snapshot.

        Returns:
            The stored snapshot, or None if persistence failed (already logged)
        """
        snapshot = LearnerStateSnapshot(
            user_id=user_id,
            path_id=path_id,
            lesson_id=lesson_id,
            assessment=assessment,
        )
        try:
            await self._append(snapshot)
        except Exception as e:
            logger.error(
                f"❌ [SnapshotRecorder] Failed to record learner state for user "
                f"{user_id[:20]}: {type(e).__name__}: {e}"
            )
            return None
        logger.info(
            f"💾 [SnapshotRecorder] Recorded {assessment.current_level.value} "
            f"(confidence {assessment.confidence:.2f}) for path {path_id}"
        )
        return snapshot

    @abstractmethod
    async def _append(self, snapshot: LearnerStateSnapshot) -> None:
        """Write one snapshot. May raise."""

    @abstractmethod
    async def history(
        self, user_id: str, path_id: Optional[str], limit: Optional[int] = None
    ) -> List[LearnerStateSnapshot]:
        """Snapshots for (user, path) oldest first; `limit` keeps the most recent."""

    async def latest(self, user_id: str, path_id: Optional[str]) -> Optional[LearnerStateSnapshot]:
        snapshots = await self.history(user_id, path_id, limit=1)
        return snapshots[-1] if snapshots else None


class InMemorySnapshotRecorder(SnapshotRecorder):

    def __init__(self):
        self._snapshots: List[LearnerStateSnapshot] = []
        self._lock = threading.Lock()

    async def _append(self, snapshot: LearnerStateSnapshot) -> None:
        with self._lock:
            self._snapshots.append(snapshot)

    async def history(
        self, user_id: str, path_id: Optional[str], limit: Optional[int] = None
    ) -> List[LearnerStateSnapshot]:
        with self._lock:
            matching = [
                s for s in self._snapshots
                if s.user_id == user_id and s.path_id == path_id
            ]
        if limit is not None:
            matching = matching[-limit:] if limit > 0 else []
        return matching


class SupabaseSnapshotRecorder(SnapshotRecorder):
    """Snapshots stored one row each in the `learner_states` table."""

    def __init__(self, supabase_client, table: str = "learner_states"):
        self.supabase = supabase_client
        self.table = table

    async def _append(self, snapshot: LearnerStateSnapshot) -> None:
        row = snapshot.to_dict()
        result = await asyncio.to_thread(
            lambda: self.supabase.table(self.table).insert(row).execute()
        )
        if not result.data:
            raise SnapshotPersistenceError(f"Insert into {self.table} returned no data")

    async def history(
        self, user_id: str, path_id: Optional[str], limit: Optional[int] = None
    ) -> List[LearnerStateSnapshot]:
        def _query():
            query = self.supabase.table(self.table)\
                .select('*')\
                .eq('user_id', user_id)
            if path_id is None:
                query = query.is_('path_id', 'null')
            else:
                query = query.eq('path_id', path_id)
            query = query.order('created_at', desc=True)
            if limit is not None:
                query = query.limit(limit)
            return query.execute()

        result = await asyncio.to_thread(_query)
        snapshots = []
        for row in reversed(result.data or []):
            try:
                snapshots.append(LearnerStateSnapshot.from_row(row))
            except (AssessmentParseError, KeyError, ValueError) as e:
                logger.warning(f"⚠️ [SnapshotRecorder] Skipping unreadable snapshot {row.get('id')}: {e}")
        return snapshots
