"""
Tutor reply generation.

One JSON-mode completion per chat turn, steered by the persona directive.
Unlike the adaptive steps there is no safe synthetic reply, so every failure
here surfaces as ReplyGenerationError.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.conversation import ConversationTurn
from adaptive_sage_tutor.errors import GenerationError, ReplyGenerationError
from adaptive_sage_tutor.learning_context import LessonContext, ModuleContext, ProgressContext
from adaptive_sage_tutor.llm_client import GenerativeTextService

logger = logging.getLogger(__name__)

# Turns of recent conversation sent with each reply request
REPLY_HISTORY_WINDOW = 10


@dataclass(frozen=True)
class ChatReply:
    message: str
    suggestions: List[str] = field(default_factory=list)
    contextual_hints: List[str] = field(default_factory=list)


def _as_strings(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def build_reply_directive(
    persona: str,
    lesson: Optional[LessonContext],
    module: Optional[ModuleContext],
    progress: Optional[ProgressContext],
) -> str:
    if lesson:
        lesson_line = f'"{lesson.title}" - {lesson.description or "No description"}'
    else:
        lesson_line = "None"
    module_line = f'"{module.title}"' if module else "None"
    progress_line = f"{progress.describe()} completed" if progress else "Starting"

    return f"""{persona}

You're helping a user learn through their personalized curriculum.

Context:
- Current lesson: {lesson_line}
- Current module: {module_line}
- User progress: {progress_line}

Match the user's communication style while being supportive. Provide contextual help related to their current lesson when appropriate.

Respond in JSON format:
{{
  "message": "Your helpful response",
  "suggestions": ["Quick suggestion 1", "Quick suggestion 2"],
  "contextualHints": ["Hint related to current lesson", "Additional context"]
}}"""


class ChatReplyGenerator:

    def __init__(self, service: GenerativeTextService, config: AdaptiveConfig):
        self.service = service
        self.temperature = config.reply_temperature
        self.timeout = config.request_timeout

    async def generate(
        self,
        user_message: str,
        history: List[ConversationTurn],
        persona: str,
        lesson: Optional[LessonContext] = None,
        module: Optional[ModuleContext] = None,
        progress: Optional[ProgressContext] = None,
    ) -> ChatReply:
        """
        Generate the tutor's reply.

        Args:
            user_message: The learner's new message
            history: Prior turns, oldest first, without the new message
            persona: Persona directive from select_persona()

        Raises:
            ReplyGenerationError: if no usable reply could be produced
        """
        directive = build_reply_directive(persona, lesson, module, progress)
        messages = [turn.to_message() for turn in history[-REPLY_HISTORY_WINDOW:]]
        messages.append({"role": "user", "content": user_message})

        start_time = time.time()
        try:
            payload = await self.service.complete(
                directive,
                messages,
                temperature=self.temperature,
                timeout=self.timeout,
            )
        except GenerationError as e:
            elapsed = time.time() - start_time
            logger.error(f"❌ [ChatReplyGenerator] Failed after {elapsed:.2f}s: {type(e).__name__}: {e}")
            raise ReplyGenerationError(f"Failed to generate chat response: {e}") from e

        message = payload.get("message")
        if not isinstance(message, str) or not message.strip():
            logger.error("❌ [ChatReplyGenerator] Reply payload has no message")
            raise ReplyGenerationError("Failed to generate chat response: reply has no message")

        elapsed = time.time() - start_time
        logger.info(f"✅ [ChatReplyGenerator] Reply generated in {elapsed:.2f}s ({len(message)} chars)")
        return ChatReply(
            message=message,
            suggestions=_as_strings(payload.get("suggestions")),
            contextual_hints=_as_strings(payload.get("contextualHints")),
        )
