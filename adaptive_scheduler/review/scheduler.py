"""
Review Scheduler.

Applies SM-2 updates to persisted review cards and answers due-queue and
progress queries. Holds no state of its own beyond injected collaborators;
several instances may share one store.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime

from loguru import logger

from ..clock import Clock, SystemClock, as_utc, read_clock
from ..concurrency import KeyedLock, retry_on_conflict
from ..models import PerformanceRecord, ReviewCard
from ..store.base import ReviewStore
from .sm2 import SM2Scheduler, validate_quality
from .stats import PerformanceAggregator


class ReviewScheduler:
    """
    Spaced repetition scheduling per (learner, item).

    Operations:
    - record_review: apply one review event (not idempotent)
    - due_cards: lazily stream cards due at a point in time
    - learner_stats: roll a learner's cards into a PerformanceRecord
    """

    def __init__(
        self,
        store: ReviewStore,
        clock: Clock | None = None,
        sm2: SM2Scheduler | None = None,
        aggregator: PerformanceAggregator | None = None,
        locks: KeyedLock | None = None,
        write_attempts: int = 3,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Persistence for review cards
            clock: Time source (system UTC clock if None)
            sm2: SM2Scheduler (creates default if None)
            aggregator: PerformanceAggregator (creates default if None)
            locks: Per-key lock registry, share it between instances on one store
            write_attempts: Attempts before a conflicting write is abandoned
        """
        self.store = store
        self.clock = clock or SystemClock()
        self.sm2 = sm2 or SM2Scheduler()
        self.aggregator = aggregator or PerformanceAggregator()
        self.locks = locks or KeyedLock()
        self.write_attempts = write_attempts

    def record_review(self, learner_id: str, item_id: str, quality: int) -> ReviewCard:
        """
        Record a review and update scheduling state.

        Args:
            learner_id: Learner identifier
            item_id: Reviewed item identifier
            quality: SM-2 quality (0-5)

        Returns:
            The stored ReviewCard after the update

        Raises:
            InvalidQuality: quality outside 0-5 (nothing is read or written)
            ConcurrencyExhausted: every save attempt conflicted
        """
        quality = validate_quality(quality)
        key = ("card", learner_id, item_id)

        def attempt() -> ReviewCard:
            now = read_clock(self.clock)
            current = self.store.load_card(learner_id, item_id)
            if current is None:
                current = self.sm2.new_card(learner_id, item_id, now)
            updated = self.sm2.calculate_next_review(current, quality, now)
            return self.store.save_card(updated)

        with self.locks.hold(key):
            card = retry_on_conflict(attempt, key, self.write_attempts)

        logger.debug(
            f"Recorded review for {learner_id}/{item_id}: quality={quality}, "
            f"ease={card.ease_factor:.2f}, interval={card.interval}d, "
            f"next_review={card.next_review_at.isoformat()}"
        )
        return card

    def get_card(self, learner_id: str, item_id: str) -> ReviewCard | None:
        return self.store.load_card(learner_id, item_id)

    def due_cards(self, learner_id: str, as_of: datetime | None = None) -> Iterator[ReviewCard]:
        """
        Cards due at ``as_of`` (default: now), most overdue first.

        Each call issues a fresh query; nothing is cached between calls.
        Naive ``as_of`` values are taken as UTC.
        """
        as_of = read_clock(self.clock) if as_of is None else as_utc(as_of)
        yield from self.store.iter_due_cards(learner_id, as_of)

    def learner_stats(self, learner_id: str, as_of: datetime | None = None) -> PerformanceRecord:
        as_of = read_clock(self.clock) if as_of is None else as_utc(as_of)
        record = self.aggregator.aggregate(self.store.iter_cards(learner_id), as_of)

        logger.debug(
            f"Stats for {learner_id}: {record.total_cards} cards, {record.mastered} mastered, "
            f"{record.needs_review} due, retention {record.retention_rate:.0f}%"
        )
        return record
