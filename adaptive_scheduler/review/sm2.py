"""
SM-2 Spaced Repetition math.

Pure functions over ReviewCard values; no I/O, no clock reads.

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from ..errors import InvalidQuality
from ..models import ReviewCard, ReviewOutcome

PASSING_QUALITY = 3


@dataclass(frozen=True)
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    first_interval: int = 1  # Days after a lapse, and for new cards
    second_interval: int = 6  # Days after the first successful recall

    @classmethod
    def from_settings(cls, settings) -> SM2Config:
        return cls(
            initial_easiness=settings.sm2_initial_ease,
            minimum_easiness=settings.sm2_minimum_ease,
            first_interval=settings.sm2_first_interval,
            second_interval=settings.sm2_second_interval,
        )


def validate_quality(quality: object) -> int:
    """Reject anything that is not an int in 0-5 (bools included)."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if not 0 <= quality <= 5:
        raise InvalidQuality(quality)
    return quality


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each card has:
    - Easiness Factor (EF): How easy the item is (2.5 default, min 1.3)
    - Interval: Days until next review
    - Repetitions: Consecutive correct recalls

    A failed recall resets the interval and repetitions outright; prior
    spacing gains are discarded rather than decayed.
    """

    def __init__(self, config: SM2Config | None = None):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SM2Config()

    def new_card(self, learner_id: str, item_id: str, now: datetime) -> ReviewCard:
        """Unsaved card in its initial state, due immediately."""
        return ReviewCard(
            learner_id=learner_id,
            item_id=item_id,
            next_review_at=now,
            ease_factor=self.config.initial_easiness,
            interval=self.config.first_interval,
            created_at=now,
        )

    def next_easiness(self, easiness: float, quality: int) -> float:
        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        return max(self.config.minimum_easiness, easiness + ef_delta)

    def calculate_next_review(
        self,
        card: ReviewCard,
        quality: int,
        now: datetime,
    ) -> ReviewCard:
        """
        Apply one review to a card.

        Args:
            card: Current card state (not modified)
            quality: Recall quality (0-5)
            now: Time of the review

        Returns:
            New ReviewCard with updated ease, interval and next review time
        """
        quality = validate_quality(quality)
        new_ef = self.next_easiness(card.ease_factor, quality)

        if quality < PASSING_QUALITY:
            # Failed - reset to beginning
            new_repetitions = 0
            new_interval = self.config.first_interval
        else:
            new_repetitions = card.repetitions + 1
            if card.interval == self.config.first_interval:
                new_interval = self.config.second_interval
            else:
                new_interval = round(card.interval * new_ef)

        new_interval = max(self.config.first_interval, new_interval)

        return replace(
            card,
            ease_factor=new_ef,
            interval=new_interval,
            repetitions=new_repetitions,
            next_review_at=now + timedelta(days=new_interval),
            last_outcome=ReviewOutcome.from_quality(quality),
            review_count=card.review_count + 1,
            last_reviewed_at=now,
        )


class QualityMapper:
    """
    Converts boolean correctness into an SM-2 quality score.

    ``fixed`` always maps correct/incorrect to the same two grades.
    ``timed`` grades by response time relative to the expected time.
    """

    def __init__(
        self,
        mode: str = "fixed",
        correct_quality: int = 4,
        incorrect_quality: int = 1,
        expected_ms: int = 10000,
    ):
        if mode not in ("fixed", "timed"):
            raise ValueError(f"Unknown quality mapping: {mode}")
        self.mode = mode
        self.correct_quality = validate_quality(correct_quality)
        self.incorrect_quality = validate_quality(incorrect_quality)
        self.expected_ms = expected_ms

    @classmethod
    def from_settings(cls, settings) -> QualityMapper:
        return cls(
            mode=settings.quality_mapping,
            correct_quality=settings.correct_quality,
            incorrect_quality=settings.incorrect_quality,
            expected_ms=settings.expected_response_ms,
        )

    def quality_for(self, is_correct: bool, response_ms: int | None = None) -> int:
        if self.mode == "fixed" or response_ms is None:
            return self.correct_quality if is_correct else self.incorrect_quality
        return self.grade_from_response(is_correct, response_ms)

    def grade_from_response(self, is_correct: bool, response_ms: int) -> int:
        """
        Convert a response to an SM-2 grade.

        Args:
            is_correct: Whether the answer was correct
            response_ms: Time taken to respond

        Returns:
            Grade 0-5
        """
        expected_ms = self.expected_ms
        if not is_correct:
            # Incorrect responses: 0-2
            if response_ms < expected_ms * 0.5:
                return 2  # Quick wrong = almost knew it
            elif response_ms < expected_ms:
                return 1  # Wrong but remembered when shown
            else:
                return 0  # Complete blackout

        # Correct responses: 3-5
        if response_ms < expected_ms * 0.5:
            return 5  # Quick and correct = perfect recall
        elif response_ms < expected_ms:
            return 4  # Correct with some hesitation
        else:
            return 3  # Correct but struggled
