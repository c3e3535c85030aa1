"""
Adaptive Tutor - per-message orchestration

Wires the conversation store, analysis trigger, difficulty classifier,
snapshot recorder, persona selector, recommendation engine and reply
generator into one chat turn:

- append the learner's message
- periodically classify comprehension and record a learner-state snapshot
- steer the reply persona by the inferred level
- generate and append the tutor's reply

Only reply generation can fail the turn; every adaptive step degrades to a
default on its own.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from adaptive_sage_tutor.assessment import DifficultyAssessment
from adaptive_sage_tutor.chat_responder import ChatReplyGenerator
from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.conversation import (
    ConversationStore,
    ConversationTurn,
    InMemoryConversationStore,
    Role,
    SupabaseConversationStore,
)
from adaptive_sage_tutor.difficulty_classifier import (
    Classifier,
    LLMDifficultyClassifier,
    StaticDifficultyClassifier,
)
from adaptive_sage_tutor.learner_state import (
    InMemorySnapshotRecorder,
    LearnerStateSnapshot,
    SnapshotRecorder,
    SupabaseSnapshotRecorder,
)
from adaptive_sage_tutor.learning_context import LessonContext, ModuleContext, ProgressContext
from adaptive_sage_tutor.llm_client import GenerativeTextService, OpenAIJSONService
from adaptive_sage_tutor.persona import BASE_PERSONA, select_persona
from adaptive_sage_tutor.recommendations import DEFAULT_RECOMMENDATIONS, AdaptiveRecommendations, RecommendationEngine
from adaptive_sage_tutor.trigger import AnalysisTrigger, count_turns

logger = logging.getLogger(__name__)


@dataclass
class TutorTurnResult:
    """What one chat turn returns to the caller."""
    reply_text: str
    message_id: str
    suggestions: List[str] = field(default_factory=list)
    contextual_hints: List[str] = field(default_factory=list)
    # Set only on turns where an analysis ran
    adaptive_insights: Optional[Dict[str, Any]] = None
    assessment: Optional[DifficultyAssessment] = None


def build_adaptive_insights(
    assessment: DifficultyAssessment,
    recommendations: AdaptiveRecommendations,
) -> Dict[str, Any]:
    return {
        "currentLevel": assessment.current_level.value,
        "confidence": assessment.confidence,
        "recommendations": recommendations.to_dict(),
    }


class AdaptiveTutor:
    """
    Adaptive chat tutor.

    Holds no per-learner state of its own; everything lives in the
    conversation store and the snapshot recorder, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        store: ConversationStore,
        classifier: Classifier,
        recommender: RecommendationEngine,
        recorder: SnapshotRecorder,
        responder: ChatReplyGenerator,
        trigger: Optional[AnalysisTrigger] = None,
        config: Optional[AdaptiveConfig] = None,
    ):
        self.config = config or AdaptiveConfig()
        self.store = store
        self.classifier = classifier
        self.recommender = recommender
        self.recorder = recorder
        self.responder = responder
        self.trigger = trigger or AnalysisTrigger(
            min_turns=self.config.analysis_min_turns,
            interval=self.config.analysis_interval,
        )

    async def handle_message(
        self,
        user_id: str,
        path_id: Optional[str],
        message: str,
        lesson_id: Optional[str] = None,
        lesson: Optional[LessonContext] = None,
        module: Optional[ModuleContext] = None,
        progress: Optional[ProgressContext] = None,
    ) -> TutorTurnResult:
        """
        Process one learner message end to end.

        Raises:
            ReplyGenerationError: the reply could not be generated; the user
                turn stays appended, no assistant turn is written
        """
        start_time = time.time()
        logger.info(f"💬 [AdaptiveTutor] Message from user {user_id[:20]} on path {path_id}")

        await self.store.append(ConversationTurn(
            user_id=user_id,
            path_id=path_id,
            role=Role.USER,
            content=message,
            lesson_id=lesson_id,
        ))

        history = await self.store.get_turns(user_id, path_id)
        turn_count = count_turns(history, self.config.trigger_scope)

        assessment: Optional[DifficultyAssessment] = None
        insights: Optional[Dict[str, Any]] = None
        persona = BASE_PERSONA

        if self.trigger.should_analyze(turn_count):
            logger.info(f"🧠 [AdaptiveTutor] Turn {turn_count} ({self.config.trigger_scope}) - running difficulty analysis")
            result = await self.classifier.classify(history, lesson=lesson, module=module)
            if not result.ok:
                logger.info(f"🧠 [AdaptiveTutor] Classification {result.status}, using default assessment")
            assessment = result.or_default()

            await self.recorder.record(user_id, path_id, lesson_id, assessment)
            persona = select_persona(assessment)
            if self.config.adaptive_enabled:
                recommendations = await self.recommender.recommend(assessment, lesson=lesson, progress=progress)
            else:
                # Disabled analysis makes no model calls beyond the reply
                recommendations = DEFAULT_RECOMMENDATIONS
            insights = build_adaptive_insights(assessment, recommendations)

        # The new message is passed separately from the prior history
        reply = await self.responder.generate(
            message,
            history[:-1],
            persona,
            lesson=lesson,
            module=module,
            progress=progress,
        )

        stored = await self.store.append(ConversationTurn(
            user_id=user_id,
            path_id=path_id,
            role=Role.ASSISTANT,
            content=reply.message,
            lesson_id=lesson_id,
            context={
                "suggestions": list(reply.suggestions),
                "contextualHints": list(reply.contextual_hints),
                "assessment": assessment.to_dict() if assessment else None,
            },
        ))

        elapsed = time.time() - start_time
        logger.info(
            f"✅ [AdaptiveTutor] Turn complete in {elapsed:.2f}s "
            f"(analysis: {'yes' if assessment else 'no'})"
        )
        return TutorTurnResult(
            reply_text=reply.message,
            message_id=stored.id,
            suggestions=list(reply.suggestions),
            contextual_hints=list(reply.contextual_hints),
            adaptive_insights=insights,
            assessment=assessment,
        )

    async def conversation(self, user_id: str, path_id: Optional[str] = None) -> List[ConversationTurn]:
        return await self.store.get_turns(user_id, path_id)

    async def latest_learner_state(self, user_id: str, path_id: Optional[str]) -> Optional[LearnerStateSnapshot]:
        return await self.recorder.latest(user_id, path_id)

    async def learner_state_history(
        self, user_id: str, path_id: Optional[str], limit: Optional[int] = None
    ) -> List[LearnerStateSnapshot]:
        return await self.recorder.history(user_id, path_id, limit=limit)


def build_tutor(
    config: Optional[AdaptiveConfig] = None,
    supabase_client=None,
    service: Optional[GenerativeTextService] = None,
) -> AdaptiveTutor:
    """
    Assemble an AdaptiveTutor from configuration.

    Uses Supabase-backed stores when a client is given, in-memory stores
    otherwise. With adaptive analysis disabled the classifier never calls
    the service and every analysis turn falls back to the default assessment
    and the default recommendations.

    Raises:
        ValueError: no service given and OPENAI_API_KEY is not configured
    """
    config = config or AdaptiveConfig.from_env()
    service = service or OpenAIJSONService(config)

    if supabase_client:
        store = SupabaseConversationStore(supabase_client)
        recorder = SupabaseSnapshotRecorder(supabase_client)
        logger.info("✅ [AdaptiveTutor] Using Supabase persistence")
    else:
        store = InMemoryConversationStore()
        recorder = InMemorySnapshotRecorder()
        logger.warning("⚠️ [AdaptiveTutor] Supabase not configured - using in-memory stores")

    if config.adaptive_enabled:
        classifier = LLMDifficultyClassifier(service, config)
    else:
        classifier = StaticDifficultyClassifier()
        logger.info("ℹ️ [AdaptiveTutor] Adaptive analysis disabled")

    return AdaptiveTutor(
        store=store,
        classifier=classifier,
        recommender=RecommendationEngine(service, config),
        recorder=recorder,
        responder=ChatReplyGenerator(service, config),
        config=config,
    )
