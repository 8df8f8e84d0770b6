"""
Response Classifier

Turns one free-text oracle reply into a structured Verdict:
1. Quality tier, from grading markers (negative markers win)
2. Announced level, from the interviewer's mode announcements

Markers are plain data so new phrasings can be added without touching the
difficulty policy.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from adaptive_interview_coach.errors import UnclassifiableReply
from adaptive_interview_coach.session_state import DifficultyLevel

logger = logging.getLogger(__name__)


class QualityTier(Enum):
    STRONG = "strong"
    ACCEPTABLE = "acceptable"
    WEAK = "weak"
    INCORRECT = "incorrect"
    UNKNOWN = "unknown"

    @property
    def is_correct(self) -> bool:
        return self in (QualityTier.STRONG, QualityTier.ACCEPTABLE)

    @property
    def is_weak(self) -> bool:
        return self in (QualityTier.WEAK, QualityTier.INCORRECT)


@dataclass(frozen=True)
class Verdict:
    """Structured outcome of one oracle reply."""
    tier: QualityTier = QualityTier.UNKNOWN
    announced_level: Optional[DifficultyLevel] = None
    matched_marker: Optional[str] = None


def _word(phrase: str) -> str:
    # Leading boundary only: "correct" must not match inside "incorrect",
    # but "correctly" still counts.
    return r"(?<![a-z])" + re.escape(phrase)


def _whole(phrase: str) -> str:
    # Both boundaries: "weak" must not match inside "weakness"
    return r"(?<![a-z])" + re.escape(phrase) + r"(?![a-z])"


class ResponseClassifier:
    """
    Case-insensitive marker scan over oracle replies.

    Order matters: negative markers are checked before positive ones because
    reading a weak answer as strong would corrupt the streak counters.
    """

    NEGATIVE_MARKERS: Sequence[Tuple[str, QualityTier]] = (
        (_word("incorrect"), QualityTier.INCORRECT),
        (_whole("not correct"), QualityTier.INCORRECT),
        (_whole("not acceptable"), QualityTier.INCORRECT),
        (_word("unacceptable"), QualityTier.INCORRECT),
        (_whole("weak"), QualityTier.WEAK),
        ("❌", QualityTier.INCORRECT),
        ("✗", QualityTier.INCORRECT),
    )

    POSITIVE_MARKERS: Sequence[Tuple[str, QualityTier]] = (
        (_word("strong"), QualityTier.STRONG),
        ("✓", QualityTier.STRONG),
        ("✔", QualityTier.STRONG),
        ("✅", QualityTier.STRONG),
        (_word("correct"), QualityTier.ACCEPTABLE),
        (_word("acceptable"), QualityTier.ACCEPTABLE),
    )

    # Highest level first: a reply may mention easier levels in passing
    LEVEL_MARKERS: Sequence[Tuple[DifficultyLevel, Tuple[str, ...]]] = (
        (DifficultyLevel.ADVANCED, (_whole("advanced mode"), _whole("hard"))),
        (DifficultyLevel.INTERMEDIATE, (_whole("intermediate mode"), _whole("medium"))),
        (DifficultyLevel.BEGINNER, (_whole("beginner mode"), _whole("easy"))),
    )

    def classify(self, text) -> Verdict:
        """
        Classify a reply. Never raises; unmatched content is UNKNOWN.

        Args:
            text: Oracle reply (anything non-string is treated as empty)

        Returns:
            Verdict with tier and optional announced level
        """
        try:
            return self.classify_strict(text)
        except UnclassifiableReply as e:
            logger.info(f"🤷 [ResponseClassifier] {e}")
            return Verdict(
                tier=QualityTier.UNKNOWN,
                announced_level=self.announced_level(text),
            )

    def classify_strict(self, text) -> Verdict:
        """Like classify(), but raises UnclassifiableReply when no tier marker matches."""
        lowered = text.lower() if isinstance(text, str) else ""
        announced = self.announced_level(text)

        for pattern, tier in list(self.NEGATIVE_MARKERS) + list(self.POSITIVE_MARKERS):
            match = re.search(pattern, lowered)
            if match:
                return Verdict(tier=tier, announced_level=announced, matched_marker=match.group(0))

        raise UnclassifiableReply(text if isinstance(text, str) else "")

    def announced_level(self, text) -> Optional[DifficultyLevel]:
        """Level named by a mode announcement, if any."""
        if not isinstance(text, str) or not text:
            return None
        lowered = text.lower()
        for level, patterns in self.LEVEL_MARKERS:
            if any(re.search(p, lowered) for p in patterns):
                return level
        return None
