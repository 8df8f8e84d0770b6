"""
Session Manager

In-memory registry of coaching sessions. Each session id owns its own
SessionEngine; nothing is shared between engines except the oracle client,
which is stateless.
"""

import logging
from typing import Any, Callable, Dict, Optional

from adaptive_interview_coach.oracle_client import Oracle
from adaptive_interview_coach.session_engine import SessionEngine
from adaptive_interview_coach.session_state import HistoryItem, SessionView

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Maps session ids to SessionEngine instances.

    Sessions live for the lifetime of the process; nothing is persisted.
    """

    def __init__(self, oracle: Oracle, engine_factory: Optional[Callable[..., SessionEngine]] = None):
        """
        Initialize SessionManager.

        Args:
            oracle: Oracle shared by every engine
            engine_factory: Optional callable(oracle=..., session_id=...) building engines
        """
        self.oracle = oracle
        self.engine_factory = engine_factory or SessionEngine
        self._sessions: Dict[str, SessionEngine] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Optional[SessionEngine]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> SessionEngine:
        engine = self._sessions.get(session_id)
        if engine is None:
            engine = self.engine_factory(oracle=self.oracle, session_id=session_id)
            self._sessions[session_id] = engine
            logger.info(f"💾 [SessionManager] Created session {session_id}")
        return engine

    def delete(self, session_id: str) -> bool:
        """
        Reset and forget a session.

        Returns:
            True if the session existed, False otherwise
        """
        engine = self._sessions.pop(session_id, None)
        if engine is None:
            return False
        engine.reset()
        return True

    @staticmethod
    def history_item_to_dict(item: HistoryItem) -> Dict[str, Any]:
        return {
            "submitted_answer": item.submitted_answer,
            "oracle_reply": item.oracle_reply,
            "timestamp": item.timestamp.isoformat(),
            "tier": item.tier,
            "failed": item.failed,
        }

    @classmethod
    def view_to_dict(cls, view: SessionView) -> Dict[str, Any]:
        """
        Convert a SessionView to a JSON-ready dictionary.

        Args:
            view: SessionView snapshot

        Returns:
            Dictionary representation
        """
        return {
            "status": view.status.value,
            "level": view.level.value if view.level else None,
            "streak": view.streak,
            "weak_streak": view.weak_streak,
            "total_correct": view.total_correct,
            "latest_question": view.latest_question,
            "history": [cls.history_item_to_dict(item) for item in view.history],
            "last_adjustment": view.last_adjustment,
        }
