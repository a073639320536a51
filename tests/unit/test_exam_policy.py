"""
Unit tests for exam stepping, pool sizing and termination rules.
"""

from datetime import UTC, datetime

import pytest

from adaptive_scheduler.errors import InvalidQuestionCount
from adaptive_scheduler.exam.policy import (
    ExamConfig,
    apply_answer,
    initial_question_target,
    should_terminate,
    step_difficulty,
)
from adaptive_scheduler.models import ExamMode, ExamSession, SessionStatus

NOW = datetime(2025, 1, 30, 9, 0, tzinfo=UTC)
CONFIG = ExamConfig()


def make_session(mode=ExamMode.ADAPTIVE, **overrides):
    fields = {
        "session_id": "s-1",
        "learner_id": "learner-1",
        "mode": mode,
        "started_at": NOW,
        "question_target": 75 if mode == ExamMode.ADAPTIVE else 100,
    }
    fields.update(overrides)
    return ExamSession(**fields)


class TestStepDifficulty:
    @pytest.mark.parametrize(
        "current,is_correct,expected",
        [
            (1, True, 2),
            (2, True, 3),
            (3, True, 3),
            (3, False, 2),
            (2, False, 1),
            (1, False, 1),
        ],
    )
    def test_steps_within_bounds(self, current, is_correct, expected):
        assert step_difficulty(current, is_correct, CONFIG) == expected

    @pytest.mark.parametrize("current,is_correct", [(3, True), (1, False), (2, True)])
    def test_returns_plain_int(self, current, is_correct):
        """Clamped results are ints, not Difficulty members."""
        assert type(step_difficulty(current, is_correct, CONFIG)) is int


class TestShouldTerminate:
    def test_adaptive_floor(self):
        """Perfect accuracy still needs 75 answers."""
        assert not should_terminate(ExamMode.ADAPTIVE, 74, 1.0, CONFIG)
        assert should_terminate(ExamMode.ADAPTIVE, 75, 1.0, CONFIG)

    def test_adaptive_mastery_threshold_inclusive(self):
        assert should_terminate(ExamMode.ADAPTIVE, 80, 0.75, CONFIG)
        assert not should_terminate(ExamMode.ADAPTIVE, 80, 0.7499, CONFIG)

    def test_adaptive_ceiling(self):
        assert not should_terminate(ExamMode.ADAPTIVE, 144, 0.5, CONFIG)
        assert should_terminate(ExamMode.ADAPTIVE, 145, 0.5, CONFIG)

    def test_standard_completes_after_limit(self):
        """Standard sessions complete on the 101st answer, not the 100th."""
        assert not should_terminate(ExamMode.STANDARD, 100, 1.0, CONFIG)
        assert should_terminate(ExamMode.STANDARD, 101, 0.0, CONFIG)

    def test_standard_ignores_mastery(self):
        assert not should_terminate(ExamMode.STANDARD, 80, 1.0, CONFIG)


class TestInitialQuestionTarget:
    def test_adaptive_starts_at_minimum(self):
        assert initial_question_target(ExamMode.ADAPTIVE, CONFIG) == 75

    def test_adaptive_ignores_count(self):
        assert initial_question_target(ExamMode.ADAPTIVE, CONFIG, question_count=10) == 75

    def test_standard_default(self):
        assert initial_question_target(ExamMode.STANDARD, CONFIG) == 100

    @pytest.mark.parametrize("count", [25, 50, 100])
    def test_standard_custom(self, count):
        assert initial_question_target(ExamMode.STANDARD, CONFIG, question_count=count) == count

    @pytest.mark.parametrize("count", [0, 24, 101, True, "50"])
    def test_standard_out_of_range(self, count):
        with pytest.raises(InvalidQuestionCount):
            initial_question_target(ExamMode.STANDARD, CONFIG, question_count=count)


class TestApplyAnswer:
    def test_first_correct_answer(self):
        session = make_session()

        updated = apply_answer(session, "q-1", True, 4200, NOW, CONFIG)

        assert updated.answered_count == 1
        assert updated.correct_count == 1
        assert updated.mastery_estimate == 1.0
        assert updated.current_difficulty == 3
        assert updated.is_active
        assert len(updated.answers) == 1
        answer = updated.answers[0]
        assert answer.item_id == "q-1"
        assert answer.difficulty == 2
        assert answer.time_spent_ms == 4200
        assert answer.answered_at == NOW

    def test_input_not_mutated(self):
        session = make_session()

        apply_answer(session, "q-1", False, 1000, NOW, CONFIG)

        assert session.answered_count == 0
        assert session.answers == []

    def test_standard_difficulty_fixed(self):
        session = make_session(ExamMode.STANDARD)

        updated = apply_answer(session, "q-1", True, 1000, NOW, CONFIG)

        assert updated.current_difficulty == 2

    def test_adaptive_completes_on_mastery(self):
        """74 answered with 60 correct, then a correct 75th: 61/75 >= 0.75."""
        session = make_session(answered_count=74, correct_count=60, mastery_estimate=60 / 74)

        updated = apply_answer(session, "q-75", True, 1000, NOW, CONFIG)

        assert updated.mastery_estimate == pytest.approx(61 / 75)
        assert updated.status == SessionStatus.COMPLETED
        assert updated.completed_at == NOW

    def test_adaptive_grows_pool_below_mastery(self):
        session = make_session(answered_count=74, correct_count=40, mastery_estimate=40 / 74)

        updated = apply_answer(session, "q-75", True, 1000, NOW, CONFIG)

        assert updated.is_active
        assert updated.question_target == 145
        assert updated.completed_at is None

    def test_adaptive_completes_at_ceiling(self):
        session = make_session(
            answered_count=144, correct_count=70, mastery_estimate=70 / 144, question_target=145
        )

        updated = apply_answer(session, "q-145", False, 1000, NOW, CONFIG)

        assert updated.status == SessionStatus.COMPLETED
        assert updated.answered_count == 145

    def test_standard_completes_on_101st(self):
        session = make_session(ExamMode.STANDARD, answered_count=100, correct_count=90, mastery_estimate=0.9)

        updated = apply_answer(session, "q-101", True, 1000, NOW, CONFIG)

        assert updated.status == SessionStatus.COMPLETED
        assert updated.answered_count == 101
