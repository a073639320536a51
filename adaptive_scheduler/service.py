"""
Learning service facade.

Routes one answered item to both engines: the exam engine when the answer
belongs to a session, then the review scheduler. Also the composition root
that wires store, clock and question bank from settings.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .clock import Clock, SystemClock
from .concurrency import KeyedLock
from .errors import InvalidCorrectness
from .exam import ExamConfig, ExamEngine
from .models import AnswerResult, ReviewCard
from .question_bank import HttpQuestionBank, QuestionBank
from .review import QualityMapper, ReviewScheduler, SM2Config, SM2Scheduler, validate_quality
from .store import SqlStore


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of routing one answer through the scheduler core."""

    card: ReviewCard
    quality: int
    exam: AnswerResult | None = None


class LearningService:
    """Single entry point for callers that only know correctness and timing."""

    def __init__(
        self,
        reviews: ReviewScheduler,
        exams: ExamEngine,
        quality_mapper: QualityMapper | None = None,
    ):
        self.reviews = reviews
        self.exams = exams
        self.quality_mapper = quality_mapper or QualityMapper()

    def record_answer(
        self,
        learner_id: str,
        item_id: str,
        is_correct: bool,
        time_spent_ms: int,
        session_id: str | None = None,
        quality: int | None = None,
    ) -> AnswerOutcome:
        """
        Record an answered item.

        Session errors (not found, closed) surface before the review card is
        touched. An explicit quality overrides the mapped one.
        """
        if not isinstance(is_correct, bool):
            raise InvalidCorrectness(is_correct)
        if quality is None:
            quality = self.quality_mapper.quality_for(is_correct, time_spent_ms)
        else:
            quality = validate_quality(quality)

        exam_result = None
        if session_id is not None:
            exam_result = self.exams.submit_answer(session_id, item_id, is_correct, time_spent_ms)

        card = self.reviews.record_review(learner_id, item_id, quality)
        return AnswerOutcome(card=card, quality=quality, exam=exam_result)


def build_service(
    settings,
    clock: Clock | None = None,
    question_bank: QuestionBank | None = None,
    store=None,
) -> LearningService:
    """
    Wire a LearningService from settings.

    Args:
        settings: config.Settings instance
        clock: Time source (system UTC clock if None)
        question_bank: Overrides the HTTP bank built from settings
        store: Overrides the SQL store built from settings
    """
    clock = clock or SystemClock()
    store = store if store is not None else SqlStore.from_settings(settings)
    if question_bank is None and settings.has_question_bank_configured():
        question_bank = HttpQuestionBank.from_settings(settings)

    locks = KeyedLock()
    reviews = ReviewScheduler(
        store,
        clock=clock,
        sm2=SM2Scheduler(SM2Config.from_settings(settings)),
        locks=locks,
        write_attempts=settings.write_retry_attempts,
    )
    exams = ExamEngine(
        store,
        clock=clock,
        question_bank=question_bank,
        config=ExamConfig.from_settings(settings),
        locks=locks,
        write_attempts=settings.write_retry_attempts,
    )

    logger.debug(
        f"Learning service ready (store={type(store).__name__}, "
        f"question_bank={type(question_bank).__name__ if question_bank else None})"
    )
    return LearningService(reviews, exams, QualityMapper.from_settings(settings))
