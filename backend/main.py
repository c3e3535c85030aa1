"""
FastAPI Backend for the Sage Adaptive Tutor

Provides REST API endpoints for:
- Adaptive chat (difficulty inference + persona-steered replies)
- Conversation history per user and learning path
- Learner-state snapshots for downstream lesson generation
"""

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
import os
import sys
import time
import logging
import signal

# Setup enhanced logging with pretty formatting
from lib.logger import setup_logging, get_logger

setup_logging(level=logging.INFO, use_colors=True)

logger = get_logger("backend.main")

# Add the adaptive_sage_tutor package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)

package_src = os.path.join(project_root, 'adaptive_sage_tutor', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from lib.supabase_client import get_supabase_client, supabase_configured

from adaptive_sage_tutor.adaptive_tutor import AdaptiveTutor, build_tutor
from adaptive_sage_tutor.config import AdaptiveConfig
from adaptive_sage_tutor.errors import ReplyGenerationError
from adaptive_sage_tutor.learning_context import LessonContext, ModuleContext, ProgressContext

SERVICE_NAME = "Sage Adaptive Tutor API"
SERVICE_VERSION = "1.0.0"

# Singletons so the environment is read and the tutor built once per process
_config: Optional[AdaptiveConfig] = None
_tutor_instance: Optional[AdaptiveTutor] = None


def get_adaptive_config() -> AdaptiveConfig:
    """Get or load the process-wide AdaptiveConfig."""
    global _config
    if _config is None:
        _config = AdaptiveConfig.from_env()
    return _config


def get_tutor_instance() -> AdaptiveTutor:
    """Get or create singleton AdaptiveTutor instance."""
    global _tutor_instance
    if _tutor_instance is None:
        config = get_adaptive_config()
        supabase = get_supabase_client() if supabase_configured() else None
        _tutor_instance = build_tutor(config, supabase_client=supabase)
    return _tutor_instance


# Initialize FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="REST API for adaptive difficulty inference in the Sage tutor",
    version=SERVICE_VERSION
)

# CORS middleware for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Pydantic Models ====================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatContext(CamelModel):
    current_lesson: Optional[Dict[str, Any]] = None
    current_module: Optional[Dict[str, Any]] = None
    user_progress: Optional[Dict[str, Any]] = None


class ChatRequest(CamelModel):
    # Optional here so a missing field gets the API's own 400 instead of a 422
    message: Optional[str] = None
    user_id: Optional[str] = None
    path_id: Optional[str] = None
    lesson_id: Optional[str] = None
    context: Optional[ChatContext] = None


class ChatResponse(CamelModel):
    message: str
    suggestions: List[str] = []
    contextual_hints: List[str] = []
    message_id: str
    adaptive_insights: Optional[Dict[str, Any]] = None


# ==================== API Endpoints ====================

@app.get("/")
async def root(config: AdaptiveConfig = Depends(get_adaptive_config)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "adaptive_enabled": config.adaptive_enabled,
        "persistence": "supabase" if supabase_configured() else "memory",
    }


@app.post("/api/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, tutor: AdaptiveTutor = Depends(get_tutor_instance)):
    """
    Handle one learner message.

    Runs difficulty analysis on trigger turns; adaptiveInsights is null on
    every other turn.
    """
    if not request.message or not request.message.strip() or not request.user_id or not request.user_id.strip():
        return JSONResponse(status_code=400, content={"message": "Message and userId are required"})

    start_time = time.time()
    logger.request("POST", "/api/chat", user_id=request.user_id, data={
        "path_id": request.path_id,
        "lesson_id": request.lesson_id,
        "message_length": len(request.message),
    })

    context = request.context or ChatContext()
    try:
        result = await tutor.handle_message(
            user_id=request.user_id,
            path_id=request.path_id,
            message=request.message,
            lesson_id=request.lesson_id,
            lesson=LessonContext.from_dict(context.current_lesson),
            module=ModuleContext.from_dict(context.current_module),
            progress=ProgressContext.from_dict(context.user_progress),
        )
    except ReplyGenerationError as e:
        logger.error("Chat reply generation failed", error=e)
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to process chat message", "error": str(e)},
        )
    except Exception as e:
        logger.error("Unexpected error processing chat message", error=e)
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to process chat message", "error": str(e)},
        )

    logger.response(200, "/api/chat", duration=time.time() - start_time, data={
        "message_id": result.message_id,
        "analysis": result.adaptive_insights is not None,
    })
    return ChatResponse(
        message=result.reply_text,
        suggestions=result.suggestions,
        contextual_hints=result.contextual_hints,
        message_id=result.message_id,
        adaptive_insights=result.adaptive_insights,
    )


@app.get("/api/chat/user/{user_id}")
async def get_user_messages(
    user_id: str,
    pathId: Optional[str] = None,
    tutor: AdaptiveTutor = Depends(get_tutor_instance),
):
    """Get all chat messages for a user, optionally limited to one learning path"""
    turns = await tutor.conversation(user_id, pathId)
    return {"messages": [turn.to_dict() for turn in turns]}


@app.get("/api/learner-state/{user_id}/{path_id}")
async def get_learner_state_history(
    user_id: str,
    path_id: str,
    limit: Optional[int] = None,
    tutor: AdaptiveTutor = Depends(get_tutor_instance),
):
    """Learner-state snapshots for a path, oldest first"""
    if limit is not None and limit < 1:
        raise HTTPException(status_code=400, detail="limit must be at least 1")
    snapshots = await tutor.learner_state_history(user_id, path_id, limit=limit)
    return {"snapshots": [snapshot.to_dict() for snapshot in snapshots]}


@app.get("/api/learner-state/{user_id}/{path_id}/latest")
async def get_latest_learner_state(
    user_id: str,
    path_id: str,
    tutor: AdaptiveTutor = Depends(get_tutor_instance),
):
    """Most recent learner-state snapshot for a path"""
    snapshot = await tutor.latest_learner_state(user_id, path_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No learner state recorded")
    return snapshot.to_dict()


@app.on_event("startup")
async def startup_event():
    """Startup event - log effective configuration."""
    config = get_adaptive_config()
    logger.section("SAGE ADAPTIVE TUTOR STARTUP", {
        "model": config.model,
        "adaptive_enabled": config.adaptive_enabled,
        "trigger": f"count >= {config.analysis_min_turns} and count % {config.analysis_interval} == 0 ({config.trigger_scope})",
        "history_window": config.history_window,
        "request_timeout_s": config.request_timeout,
        "persistence": "supabase" if supabase_configured() else "memory",
    })


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    try:
        uvicorn.run(app, host="0.0.0.0", port=8000)
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped.")
        sys.exit(0)
