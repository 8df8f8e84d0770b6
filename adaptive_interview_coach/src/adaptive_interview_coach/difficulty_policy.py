"""
Difficulty Policy

Deterministic level transitions driven by answer streaks.
Three correct answers in a row raise the level, two weak or incorrect
answers in a row lower it, and the interviewer's own mode announcement
overrides the locally computed level when the two disagree.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from adaptive_interview_coach.response_classifier import QualityTier, Verdict
from adaptive_interview_coach.session_state import DifficultyLevel, PerformanceState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DifficultyAdjustment:
    """Result of applying one verdict."""
    state: PerformanceState
    direction: Optional[str]  # "increase", "decrease", or None
    reason: str
    reconciled: bool = False

    @property
    def changed_level(self) -> bool:
        return self.direction is not None


class DifficultyPolicy:
    """
    Pure state machine over PerformanceState.

    Algorithm:
    - STRONG/ACCEPTABLE extends the correct streak, WEAK/INCORRECT the weak streak
    - UNKNOWN leaves every counter alone
    - correct_streak >= 3 below ADVANCED -> one level up, streaks reset
    - weak_streak >= 2 above BEGINNER -> one level down, streaks reset
    - an announced level that differs from the computed one wins
    """

    PROMOTION_STREAK = 3
    DEMOTION_STREAK = 2

    def apply(self, state: PerformanceState, verdict: Verdict) -> PerformanceState:
        return self.evaluate(state, verdict).state

    def evaluate(self, state: PerformanceState, verdict: Verdict) -> DifficultyAdjustment:
        """
        Compute the next state for one verdict.

        Args:
            state: Current performance counters
            verdict: Classified oracle reply

        Returns:
            DifficultyAdjustment carrying the new state
        """
        tier = verdict.tier
        if tier.is_correct:
            new_state = replace(
                state,
                correct_streak=state.correct_streak + 1,
                weak_streak=0,
                total_correct=state.total_correct + 1,
            )
        elif tier.is_weak:
            new_state = replace(state, weak_streak=state.weak_streak + 1, correct_streak=0)
        else:
            new_state = state

        reason = f"Answer graded {tier.value} (streak={new_state.correct_streak}, weak={new_state.weak_streak})"

        # Mutually exclusive: a verdict only ever grows one streak
        if new_state.correct_streak >= self.PROMOTION_STREAK and new_state.level < DifficultyLevel.ADVANCED:
            new_state = PerformanceState(
                level=new_state.level.raised(),
                total_correct=new_state.total_correct,
            )
            reason = f"{self.PROMOTION_STREAK} correct answers in a row"
        elif new_state.weak_streak >= self.DEMOTION_STREAK and new_state.level > DifficultyLevel.BEGINNER:
            new_state = PerformanceState(
                level=new_state.level.lowered(),
                total_correct=new_state.total_correct,
            )
            reason = f"{self.DEMOTION_STREAK} weak or incorrect answers in a row"

        reconciled = False
        if verdict.announced_level is not None and verdict.announced_level != new_state.level:
            computed = new_state.level
            new_state = self.reconcile(new_state, verdict.announced_level)
            reason = f"Interviewer announced {verdict.announced_level.value} (computed {computed.value})"
            reconciled = True

        return DifficultyAdjustment(
            state=new_state,
            direction=self._direction(state.level, new_state.level),
            reason=reason,
            reconciled=reconciled,
        )

    def reconcile(self, state: PerformanceState, announced: Optional[DifficultyLevel]) -> PerformanceState:
        """Let an announced level override the tracked one; streaks restart."""
        if announced is None or announced == state.level:
            return state
        logger.warning(
            f"🔀 [DifficultyPolicy] Reconciling level: tracked {state.level.value}, "
            f"interviewer announced {announced.value} "
            f"(streak={state.correct_streak}, weak={state.weak_streak})"
        )
        return PerformanceState(level=announced, total_correct=state.total_correct)

    @staticmethod
    def _direction(old: DifficultyLevel, new: DifficultyLevel) -> Optional[str]:
        if new > old:
            return "increase"
        if new < old:
            return "decrease"
        return None
