"""
Domain records for the scheduler core.

- ReviewCard: SM-2 state for one (learner, item) pair
- ExamSession: progress of one adaptive or standard exam attempt
- PerformanceRecord: learner-level rollup computed on demand

Records carry a ``version`` used for compare-and-swap saves; version 0 means
the record has never been persisted.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from .errors import InvalidDifficultyHint, InvalidExamMode

# =============================================================================
# Enums
# =============================================================================


class ReviewOutcome(str, Enum):
    """Most recent recall result for a card."""

    NOT_REVIEWED = "not_reviewed"
    CORRECT = "correct"
    INCORRECT = "incorrect"

    @classmethod
    def from_quality(cls, quality: int) -> ReviewOutcome:
        return cls.CORRECT if quality >= 3 else cls.INCORRECT


class ExamMode(str, Enum):
    ADAPTIVE = "adaptive"
    STANDARD = "standard"

    @classmethod
    def parse(cls, value: ExamMode | str) -> ExamMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise InvalidExamMode(value) from e


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Difficulty(IntEnum):
    """Question difficulty tiers used by the question bank."""

    EASY = 1
    MEDIUM = 2
    HARD = 3

    @classmethod
    def from_hint(cls, hint: str | None, default: int = 2) -> Difficulty:
        """Map an easy/medium/hard hint (case-insensitive) to a tier."""
        if hint is None:
            return cls(default)
        if isinstance(hint, cls):
            return hint
        if not isinstance(hint, str):
            raise InvalidDifficultyHint(hint)
        try:
            return cls[hint.strip().upper()]
        except KeyError as e:
            raise InvalidDifficultyHint(hint) from e


# =============================================================================
# Review cards
# =============================================================================


@dataclass
class ReviewCard:
    """SM-2 state for a single learner/item pair."""

    learner_id: str
    item_id: str
    next_review_at: datetime  # Due immediately on creation
    ease_factor: float = 2.5  # EF starts at 2.5, floor 1.3
    interval: int = 1  # Days until next review
    repetitions: int = 0  # Consecutive successful recalls
    last_outcome: ReviewOutcome = ReviewOutcome.NOT_REVIEWED
    review_count: int = 0  # Every review event, never reset
    created_at: datetime | None = None
    last_reviewed_at: datetime | None = None
    version: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.learner_id, self.item_id)

    def is_due(self, as_of: datetime) -> bool:
        return self.next_review_at <= as_of


# =============================================================================
# Exam sessions
# =============================================================================


@dataclass
class AnswerRecord:
    """One answered question inside an exam session."""

    item_id: str
    is_correct: bool
    time_spent_ms: int
    difficulty: int  # Difficulty the item was served at
    answered_at: datetime


@dataclass
class ExamSession:
    """Progress and adaptive state of one exam attempt."""

    session_id: str
    learner_id: str
    mode: ExamMode
    started_at: datetime
    question_target: int  # Pool size to request from the question bank
    current_difficulty: int = 2
    answered_count: int = 0
    correct_count: int = 0
    mastery_estimate: float = 0.5
    status: SessionStatus = SessionStatus.ACTIVE
    completed_at: datetime | None = None
    answers: list[AnswerRecord] = field(default_factory=list)
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def is_adaptive(self) -> bool:
        return self.mode == ExamMode.ADAPTIVE

    @property
    def score(self) -> int:
        """Rounded percentage of correct answers."""
        if self.answered_count == 0:
            return 0
        return round(self.correct_count / self.answered_count * 100)

    @property
    def answered_item_ids(self) -> frozenset[str]:
        return frozenset(a.item_id for a in self.answers)

    @property
    def avg_time_spent_ms(self) -> int | None:
        if not self.answers:
            return None
        return sum(a.time_spent_ms for a in self.answers) // len(self.answers)

    def __repr__(self) -> str:
        return (
            f"<ExamSession id={self.session_id} learner={self.learner_id} mode={self.mode.value} "
            f"status={self.status.value} answered={self.answered_count}>"
        )


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of submitting one exam answer."""

    session: ExamSession
    next_difficulty: int | None  # None once completed or in standard mode

    @property
    def completed(self) -> bool:
        return not self.session.is_active


# =============================================================================
# Aggregates
# =============================================================================


@dataclass(frozen=True)
class PerformanceRecord:
    """Learner-level rollup of review cards. Categories overlap."""

    total_cards: int = 0
    mastered: int = 0
    learning: int = 0
    needs_review: int = 0
    retention_rate: float = 0.0  # 0-100

    @property
    def mastery_percent(self) -> float:
        if self.total_cards == 0:
            return 0.0
        return self.mastered / self.total_cards * 100

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mastery_percent"] = self.mastery_percent
        return data
