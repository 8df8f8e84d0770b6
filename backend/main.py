"""
FastAPI Backend for the Adaptive Interview Coach

Exposes the session engine over REST:
- Start a session at a chosen difficulty
- Submit solutions for grading
- Reset a session
- Read the current session view
"""

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
import os
import sys
import time
import logging
import signal
from functools import partial

from lib.logger import setup_logging, get_logger

setup_logging(level=logging.INFO, use_colors=True)

logger = get_logger("backend.main")

# Add the adaptive_interview_coach package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)
package_src = os.path.join(project_root, 'adaptive_interview_coach', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from adaptive_interview_coach.errors import (
    CoachError,
    InvalidInput,
    InvalidState,
    OracleUnavailable,
    SessionBusy,
)
from adaptive_interview_coach.oracle_client import OpenAIOracle
from adaptive_interview_coach.session_engine import SessionEngine
from adaptive_interview_coach.session_manager import SessionManager
from adaptive_interview_coach.session_state import LEVEL_CATALOGUE, DifficultyLevel

# Singleton so every request sees the same sessions
_session_manager = None


def get_session_manager() -> SessionManager:
    """Get or create the process-wide SessionManager."""
    global _session_manager
    if _session_manager is None:
        oracle = OpenAIOracle()
        _session_manager = SessionManager(
            oracle=oracle,
            engine_factory=partial(SessionEngine, max_tokens=oracle.config.max_tokens),
        )
    return _session_manager


app = FastAPI(
    title="Adaptive Interview Coach API",
    description="REST API for adaptive coding-interview practice",
    version="1.0.0"
)

# CORS middleware for a local frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Pydantic Models ====================

class StartRequest(BaseModel):
    level: str


class SubmitRequest(BaseModel):
    answer: str


class HistoryEntry(BaseModel):
    submitted_answer: str
    oracle_reply: str
    timestamp: str
    tier: str
    failed: bool = False


class SessionViewResponse(BaseModel):
    session_id: str
    status: str
    level: Optional[str]
    streak: int
    weak_streak: int
    total_correct: int
    latest_question: str
    history: List[HistoryEntry] = []
    last_adjustment: Optional[str] = None


class LevelInfo(BaseModel):
    level: str
    label: str
    focus: List[str]
    examples: List[str]


# ==================== Helper Functions ====================

ERROR_STATUS = {
    InvalidInput: 400,
    InvalidState: 409,
    SessionBusy: 429,
    OracleUnavailable: 503,
}


def to_http_error(error: CoachError) -> HTTPException:
    """Map an engine error onto an HTTP status."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def render_view(session_id: str, view) -> Dict[str, Any]:
    return {"session_id": session_id, **SessionManager.view_to_dict(view)}


# ==================== API Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Adaptive Interview Coach API",
        "version": "1.0.0",
    }


@app.get("/api/levels", response_model=List[LevelInfo])
async def list_levels():
    """Difficulty levels with their question focus."""
    return [
        {
            "level": level.value,
            "label": info["label"],
            "focus": list(info["focus"]),
            "examples": list(info["examples"]),
        }
        for level, info in LEVEL_CATALOGUE.items()
    ]


@app.post("/api/sessions/{session_id}/start", response_model=SessionViewResponse)
async def start_session(
    session_id: str,
    request: StartRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Start a session and fetch the first question."""
    start_time = time.time()
    logger.section("START SESSION", {"session_id": session_id, "level": request.level})
    # Validate before registering so a bad request leaves no session behind
    try:
        level = DifficultyLevel.parse(request.level)
    except ValueError as e:
        logger.warning("Start rejected", data={"session_id": session_id, "error": str(e)})
        raise HTTPException(status_code=400, detail=str(e))

    engine = manager.get_or_create(session_id)
    try:
        view = await engine.start(level)
    except CoachError as e:
        logger.warning("Start failed", data={"session_id": session_id, "error": f"{type(e).__name__}: {e}"})
        raise to_http_error(e)

    logger.response(200, f"/api/sessions/{session_id}/start", duration=time.time() - start_time)
    return render_view(session_id, view)


@app.post("/api/sessions/{session_id}/submit", response_model=SessionViewResponse)
async def submit_solution(
    session_id: str,
    request: SubmitRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Submit a solution for the current question."""
    start_time = time.time()
    logger.request("POST", f"/api/sessions/{session_id}/submit", data={
        "answer_length": len(request.answer),
    })
    engine = manager.get(session_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Session not found")
    try:
        view = await engine.submit(request.answer)
    except CoachError as e:
        logger.warning("Submit rejected", data={"session_id": session_id, "error": f"{type(e).__name__}: {e}"})
        raise to_http_error(e)

    latest = view.history[-1] if view.history else None
    if latest is not None and latest.failed:
        logger.warning("Interviewer unavailable, failure recorded in transcript", data={"session_id": session_id})
    else:
        logger.success("Solution graded", data={
            "tier": latest.tier if latest else None,
            "level": view.level.value if view.level else None,
            "streak": view.streak,
        })
    logger.response(200, f"/api/sessions/{session_id}/submit", duration=time.time() - start_time)
    return render_view(session_id, view)


@app.post("/api/sessions/{session_id}/reset")
async def reset_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """Discard a session's transcript and progress."""
    engine = manager.get(session_id)
    if engine is not None:
        engine.reset()
    logger.info(f"🔄 Session reset: {session_id}")
    return {"status": "reset", "session_id": session_id}


@app.get("/api/sessions/{session_id}", response_model=SessionViewResponse)
async def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """Current view of a session."""
    engine = manager.get(session_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return render_view(session_id, engine.view())


@app.delete("/api/sessions/{session_id}")
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """Forget a session entirely."""
    if not manager.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
