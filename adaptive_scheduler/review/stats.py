"""
Performance aggregation over a learner's review cards.

Classification:
- mastered: ease factor above 2.5 and more than 3 consecutive recalls
- learning: otherwise, while the interval is still a week or less
- needs review: due now, counted independently of the two above

Retention is the share of reviewed cards whose most recent outcome was
correct. Nothing here feeds back into scheduling.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from ..models import PerformanceRecord, ReviewCard, ReviewOutcome


class PerformanceAggregator:
    """Rolls review cards up into a PerformanceRecord."""

    MASTERY_MIN_EASE = 2.5
    MASTERY_MIN_REPETITIONS = 3
    LEARNING_MAX_INTERVAL = 7

    def is_mastered(self, card: ReviewCard) -> bool:
        return (
            card.ease_factor > self.MASTERY_MIN_EASE
            and card.repetitions > self.MASTERY_MIN_REPETITIONS
        )

    def is_learning(self, card: ReviewCard) -> bool:
        return not self.is_mastered(card) and card.interval <= self.LEARNING_MAX_INTERVAL

    def aggregate(self, cards: Iterable[ReviewCard], as_of: datetime) -> PerformanceRecord:
        total = mastered = learning = needs_review = 0
        reviewed = correct = 0

        for card in cards:
            total += 1
            if self.is_mastered(card):
                mastered += 1
            elif card.interval <= self.LEARNING_MAX_INTERVAL:
                learning += 1

            if card.is_due(as_of):
                needs_review += 1

            if card.last_outcome is not ReviewOutcome.NOT_REVIEWED:
                reviewed += 1
                if card.last_outcome is ReviewOutcome.CORRECT:
                    correct += 1

        retention = (correct / reviewed) * 100 if reviewed > 0 else 0.0

        return PerformanceRecord(
            total_cards=total,
            mastered=mastered,
            learning=learning,
            needs_review=needs_review,
            retention_rate=retention,
        )
