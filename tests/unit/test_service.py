"""
Unit tests for LearningService routing and wiring.
"""

import pytest

from adaptive_scheduler.errors import InvalidCorrectness, InvalidQuality, SessionClosed, SessionNotFound
from adaptive_scheduler.question_bank import HttpQuestionBank
from adaptive_scheduler.review import QualityMapper
from adaptive_scheduler.service import LearningService, build_service
from config import Settings


@pytest.fixture
def service(reviews, exams):
    return LearningService(reviews, exams)


class TestRecordAnswer:
    def test_review_only(self, service):
        outcome = service.record_answer("learner-1", "item-1", True, 5000)

        assert outcome.quality == 4
        assert outcome.exam is None
        assert outcome.card.review_count == 1
        assert outcome.card.interval == 6

    def test_incorrect_maps_to_failing_quality(self, service):
        outcome = service.record_answer("learner-1", "item-1", False, 5000)

        assert outcome.quality == 1
        assert outcome.card.repetitions == 0

    def test_explicit_quality_overrides(self, service):
        outcome = service.record_answer("learner-1", "item-1", True, 5000, quality=5)

        assert outcome.quality == 5
        assert outcome.card.ease_factor == pytest.approx(2.6)

    def test_invalid_explicit_quality(self, service, store):
        with pytest.raises(InvalidQuality):
            service.record_answer("learner-1", "item-1", True, 5000, quality=9)
        assert len(store) == 0

    def test_non_bool_correctness_rejected(self, service, exams, store):
        session = exams.start_session("learner-1", "adaptive")

        with pytest.raises(InvalidCorrectness):
            service.record_answer("learner-1", "item-1", "false", 5000, session_id=session.session_id)

        assert exams.get_session(session.session_id).answered_count == 0
        assert store.load_card("learner-1", "item-1") is None

    def test_timed_mapping(self, reviews, exams):
        service = LearningService(reviews, exams, QualityMapper(mode="timed", expected_ms=10000))

        assert service.record_answer("learner-1", "fast", True, 2000).quality == 5
        assert service.record_answer("learner-1", "slow", True, 20000).quality == 3

    def test_routes_to_exam_session(self, service, exams):
        session = exams.start_session("learner-1", "adaptive")

        outcome = service.record_answer("learner-1", "item-1", True, 5000, session_id=session.session_id)

        assert outcome.exam is not None
        assert outcome.exam.next_difficulty == 3
        assert exams.get_session(session.session_id).answered_count == 1
        assert outcome.card.review_count == 1

    def test_unknown_session_leaves_card_untouched(self, service, reviews):
        with pytest.raises(SessionNotFound):
            service.record_answer("learner-1", "item-1", True, 5000, session_id="missing")

        assert reviews.get_card("learner-1", "item-1") is None

    def test_closed_session_leaves_card_untouched(self, service, exams, reviews):
        session = exams.start_session("learner-1", "standard")
        for n in range(101):
            exams.submit_answer(session.session_id, f"warmup-{n}", True, 100)

        with pytest.raises(SessionClosed):
            service.record_answer("learner-1", "item-1", True, 5000, session_id=session.session_id)

        assert reviews.get_card("learner-1", "item-1") is None


class TestBuildService:
    def test_wires_from_settings(self, store, clock):
        settings = Settings(
            _env_file=None,
            sm2_second_interval=4,
            correct_quality=5,
            write_retry_attempts=7,
        )

        service = build_service(settings, clock=clock, store=store)

        assert service.reviews.store is store
        assert service.exams.store is store
        assert service.reviews.locks is service.exams.locks
        assert service.reviews.write_attempts == 7
        assert service.exams.question_bank is None

        outcome = service.record_answer("learner-1", "item-1", True, 1000)
        assert outcome.quality == 5
        assert outcome.card.interval == 4

    def test_http_bank_when_configured(self, store, clock):
        settings = Settings(_env_file=None, question_bank_url="http://bank.test")

        service = build_service(settings, clock=clock, store=store)

        assert isinstance(service.exams.question_bank, HttpQuestionBank)
        service.exams.question_bank.close()

