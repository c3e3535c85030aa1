"""
Lesson, module and progress context sent along with each chat message.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LessonContext:
    title: str
    description: Optional[str] = None
    difficulty: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["LessonContext"]:
        if not data or not data.get("title"):
            return None
        return cls(
            title=str(data["title"]),
            description=data.get("description"),
            difficulty=data.get("difficulty"),
        )


@dataclass(frozen=True)
class ModuleContext:
    title: str
    difficulty: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ModuleContext"]:
        if not data or not data.get("title"):
            return None
        return cls(title=str(data["title"]), difficulty=data.get("difficulty"))


@dataclass(frozen=True)
class ProgressContext:
    """Lessons completed out of the total in the current path."""
    completed: int = 0
    total: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ProgressContext"]:
        if not data:
            return None
        try:
            return cls(completed=int(data.get("completed") or 0), total=int(data.get("total") or 0))
        except (TypeError, ValueError):
            return None

    def describe(self) -> str:
        return f"{self.completed}/{self.total} lessons"


def declared_difficulty(lesson: Optional[LessonContext], module: Optional[ModuleContext]) -> str:
    """Lesson difficulty, else module difficulty, else "Unknown"."""
    if lesson and lesson.difficulty:
        return lesson.difficulty
    if module and module.difficulty:
        return module.difficulty
    return "Unknown"
