"""
Adaptive Session Engine

Owns one coaching session end to end:
- Sends the opening request and every solution to the oracle
- Keeps the transcript well-formed
- Classifies replies and applies the difficulty policy
- Exposes a read-only SessionView

Only one oracle request may be in flight per session. State is committed
after a complete reply is in hand, so a failed or cancelled call never
leaves the session half-updated.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from adaptive_interview_coach.difficulty_policy import DifficultyPolicy
from adaptive_interview_coach.errors import (
    InvalidInput,
    InvalidState,
    OracleUnavailable,
    SessionBusy,
)
from adaptive_interview_coach.oracle_client import Oracle
from adaptive_interview_coach.prompts import (
    MISSING_TEXT_NOTICE,
    SUBMIT_FAILURE_NOTICE,
    SYSTEM_PROMPT,
    opening_instruction,
    solution_message,
)
from adaptive_interview_coach.response_classifier import QualityTier, ResponseClassifier
from adaptive_interview_coach.session_state import (
    DifficultyLevel,
    HistoryItem,
    PerformanceState,
    Role,
    SessionStatus,
    SessionView,
    TranscriptEntry,
)
from adaptive_interview_coach.transcript import Transcript

logger = logging.getLogger(__name__)


class SessionEngine:
    """
    NOT_STARTED --start()--> ACTIVE --submit()*--> ACTIVE --reset()--> NOT_STARTED
    """

    def __init__(
        self,
        oracle: Oracle,
        classifier: Optional[ResponseClassifier] = None,
        policy: Optional[DifficultyPolicy] = None,
        max_tokens: int = 1500,
        system_prompt: str = SYSTEM_PROMPT,
        max_payload_turns: Optional[int] = None,
        session_id: Optional[str] = None,
    ):
        self.oracle = oracle
        self.classifier = classifier or ResponseClassifier()
        self.policy = policy or DifficultyPolicy()
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.max_payload_turns = max_payload_turns
        self.session_id = session_id or "default"

        self._busy = False
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0
        self._clear()

    def _clear(self) -> None:
        self.status = SessionStatus.NOT_STARTED
        self.transcript = Transcript(max_payload_turns=self.max_payload_turns)
        self.performance: Optional[PerformanceState] = None
        self.history: List[HistoryItem] = []
        self.last_adjustment: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._busy

    # ==================== Caller boundary ====================

    async def start(self, level) -> SessionView:
        """
        Begin a session at the chosen level and fetch the first question.

        Raises:
            SessionBusy: a request is already pending
            InvalidInput: level is not a known difficulty
            InvalidState: a question has already been issued
            OracleUnavailable: the first question could not be fetched;
                the session stays ACTIVE with no question and start() may be retried
        """
        if self._busy:
            raise SessionBusy("A request is already pending for this session")
        try:
            level = DifficultyLevel.parse(level)
        except ValueError as e:
            raise InvalidInput(str(e)) from e
        if self.status is SessionStatus.ACTIVE and self.transcript.latest_oracle_reply():
            raise InvalidState("Session already started; call reset() first")

        self.status = SessionStatus.ACTIVE
        self.performance = PerformanceState.fresh(level)
        self.history = []
        self.last_adjustment = None

        instruction = TranscriptEntry(role=Role.USER, content=opening_instruction(level))
        logger.info(f"🚀 [SessionEngine:{self.session_id}] Starting at {level.value}")

        reply = await self._call_oracle(self.transcript.to_messages(pending=instruction))
        if not reply:
            raise OracleUnavailable("Interviewer returned an empty first question")

        # No answer has been graded yet: only the announced level matters here
        announced = self.classifier.announced_level(reply)
        reconciled = self.policy.reconcile(self.performance, announced)
        if reconciled.level != level:
            self.last_adjustment = f"Interviewer announced {reconciled.level.value} (chosen {level.value})"

        self.transcript.extend([instruction, TranscriptEntry(role=Role.ORACLE, content=reply)])
        self.performance = reconciled
        return self.view()

    async def submit(self, answer: str) -> SessionView:
        """
        Send a solution for grading and move to the next question.

        An oracle failure does not raise: it is recorded as a synthetic
        interviewer turn and the performance counters stay as they were.

        Raises:
            SessionBusy: a request is already pending
            InvalidInput: answer is empty or whitespace
            InvalidState: no active session, or no question issued yet
        """
        if self._busy:
            raise SessionBusy("A request is already pending for this session")
        if not isinstance(answer, str) or not answer.strip():
            raise InvalidInput("Solution must not be empty")
        if self.status is not SessionStatus.ACTIVE:
            raise InvalidState("submit() requires an active session; call start() first")
        if not self.transcript.latest_oracle_reply():
            raise InvalidState("No question has been issued yet; retry start()")

        user_entry = TranscriptEntry(role=Role.USER, content=solution_message(answer))
        try:
            reply = await self._call_oracle(self.transcript.to_messages(pending=user_entry))
        except OracleUnavailable as e:
            return self._commit_failure(answer, user_entry, SUBMIT_FAILURE_NOTICE.format(error=e))
        if not reply:
            return self._commit_failure(answer, user_entry, MISSING_TEXT_NOTICE)

        verdict = self.classifier.classify(reply)
        adjustment = self.policy.evaluate(self.performance, verdict)

        # Commit point
        self.transcript.extend([user_entry, TranscriptEntry(role=Role.ORACLE, content=reply)])
        self.performance = adjustment.state
        self.history.append(HistoryItem(
            submitted_answer=answer,
            oracle_reply=reply,
            timestamp=datetime.now(),
            tier=verdict.tier.value,
        ))
        if adjustment.changed_level:
            self.last_adjustment = adjustment.reason
            logger.info(
                f"📊 [SessionEngine:{self.session_id}] Difficulty {adjustment.direction}d "
                f"to {adjustment.state.level.value} ({adjustment.reason})"
            )
        else:
            logger.debug(f"[SessionEngine:{self.session_id}] {adjustment.reason}")
        return self.view()

    def reset(self) -> None:
        """Discard the session. Cancels any pending oracle call. Idempotent."""
        self._generation += 1
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            logger.info(f"🛑 [SessionEngine:{self.session_id}] Cancelled pending oracle call")
        self._inflight = None
        self._busy = False
        self._clear()

    def view(self) -> SessionView:
        performance = self.performance
        return SessionView(
            status=self.status,
            level=performance.level if performance else None,
            streak=performance.correct_streak if performance else 0,
            weak_streak=performance.weak_streak if performance else 0,
            total_correct=performance.total_correct if performance else 0,
            latest_question=self.transcript.latest_oracle_reply(),
            history=tuple(self.history),
            last_adjustment=self.last_adjustment,
        )

    # ==================== Internals ====================

    async def _call_oracle(self, messages) -> str:
        generation = self._generation
        self._busy = True
        self._inflight = asyncio.ensure_future(
            self.oracle.complete(self.system_prompt, messages, self.max_tokens)
        )
        try:
            reply = await self._inflight
        except asyncio.CancelledError:
            if generation != self._generation:
                raise InvalidState("Session was reset while waiting for the interviewer") from None
            raise
        except OracleUnavailable as e:
            logger.warning(f"⚠️ [SessionEngine:{self.session_id}] Oracle unavailable: {e}")
            raise
        finally:
            if generation == self._generation:
                self._busy = False
                self._inflight = None

        if generation != self._generation:
            raise InvalidState("Session was reset while waiting for the interviewer")
        return reply if isinstance(reply, str) else ""

    def _commit_failure(self, answer: str, user_entry: TranscriptEntry, notice: str) -> SessionView:
        self.transcript.extend([
            user_entry,
            TranscriptEntry(role=Role.ORACLE, content=notice, synthetic=True),
        ])
        self.history.append(HistoryItem(
            submitted_answer=answer,
            oracle_reply=notice,
            timestamp=datetime.now(),
            tier=QualityTier.UNKNOWN.value,
            failed=True,
        ))
        return self.view()
