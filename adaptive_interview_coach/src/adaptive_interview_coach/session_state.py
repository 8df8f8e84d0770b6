"""
Session State Data Model

Defines the difficulty levels, performance counters, transcript entries and
the read-only SessionView handed to callers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class DifficultyLevel(Enum):
    """Interview difficulty, ordered from floor to ceiling."""
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    @property
    def leetcode_label(self) -> str:
        """EASY / MEDIUM / HARD, as the interviewer prompt names them."""
        return LEVEL_CATALOGUE[self]["label"]

    @property
    def focus(self) -> Tuple[str, ...]:
        return LEVEL_CATALOGUE[self]["focus"]

    def raised(self) -> "DifficultyLevel":
        """One step up, clamped at ADVANCED."""
        return _LEVEL_ORDER[min(self.rank + 1, len(_LEVEL_ORDER) - 1)]

    def lowered(self) -> "DifficultyLevel":
        """One step down, clamped at BEGINNER."""
        return _LEVEL_ORDER[max(self.rank - 1, 0)]

    def __lt__(self, other):
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.rank < other.rank

    def __gt__(self, other):
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.rank > other.rank

    @classmethod
    def parse(cls, value) -> "DifficultyLevel":
        """Accept a DifficultyLevel or its case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"Unknown difficulty level: {value!r}")


_LEVEL_ORDER = [DifficultyLevel.BEGINNER, DifficultyLevel.INTERMEDIATE, DifficultyLevel.ADVANCED]

LEVEL_CATALOGUE = {
    DifficultyLevel.BEGINNER: {
        "label": "EASY",
        "focus": (
            "Arrays, Strings, Basic hashing",
            "Two-pointer easy problems",
            "Simple recursion, Easy math problems",
        ),
        "examples": (
            "Two Sum", "Reverse a string", "Check if two strings are anagrams",
            "Find maximum in an array", "Move zeros to end",
        ),
    },
    DifficultyLevel.INTERMEDIATE: {
        "label": "MEDIUM",
        "focus": (
            "Medium array/string problems",
            "Basic DP, Hash maps",
            "Binary search, Stack/Queue problems",
        ),
        "examples": (
            "Longest substring without repeating", "Group anagrams", "3Sum",
            "Container with most water",
        ),
    },
    DifficultyLevel.ADVANCED: {
        "label": "HARD",
        "focus": (
            "Advanced DP, Backtracking",
            "Graph algorithms, Tree/Trie problems",
            "Greedy + edge cases, Optimization problems",
        ),
        "examples": (
            "Number of islands", "Coin change", "Median of two sorted arrays",
            "Word break", "Kth smallest element in BST",
        ),
    },
}


@dataclass(frozen=True)
class PerformanceState:
    """
    Streak counters for one session.

    correct_streak and weak_streak are never both positive; every graded
    verdict resets the opposite streak.
    """
    level: DifficultyLevel
    correct_streak: int = 0
    weak_streak: int = 0
    total_correct: int = 0

    @classmethod
    def fresh(cls, level: DifficultyLevel) -> "PerformanceState":
        return cls(level=level)


class Role(Enum):
    USER = "user"
    ORACLE = "assistant"


@dataclass(frozen=True)
class TranscriptEntry:
    role: Role
    content: str
    synthetic: bool = False  # failure notice, never sent to the oracle
    created_at: datetime = field(default_factory=datetime.now)


class SessionStatus(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"


@dataclass(frozen=True)
class HistoryItem:
    """One graded (or failed) submission, in the order it was made."""
    submitted_answer: str
    oracle_reply: str
    timestamp: datetime
    tier: str
    failed: bool = False


@dataclass(frozen=True)
class SessionView:
    """Read-only projection of a session. Derived on demand, never stored."""
    status: SessionStatus
    level: Optional[DifficultyLevel]
    streak: int
    weak_streak: int
    total_correct: int
    latest_question: str
    history: Tuple[HistoryItem, ...] = ()
    last_adjustment: Optional[str] = None
