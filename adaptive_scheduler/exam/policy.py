"""
Exam session policy: difficulty stepping, pool sizing and termination.

Pure functions over ExamSession values. Termination rules:

- adaptive: at least 75 answers, then stop once running accuracy reaches
  75% or 145 answers have been recorded
- standard: stop once more than 100 answers have been recorded (the 101st
  submission closes the session)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime

from ..errors import InvalidQuestionCount
from ..models import AnswerRecord, Difficulty, ExamMode, ExamSession, SessionStatus


@dataclass(frozen=True)
class ExamConfig:
    """Configuration for exam sessions."""

    initial_difficulty: int = Difficulty.MEDIUM
    min_difficulty: int = Difficulty.EASY
    max_difficulty: int = Difficulty.HARD
    initial_mastery: float = 0.5

    adaptive_min_questions: int = 75
    adaptive_max_questions: int = 145
    adaptive_mastery_threshold: float = 0.75

    standard_question_limit: int = 100  # Completed once answers exceed this
    standard_question_count: int = 100
    standard_min_questions: int = 25
    standard_max_questions: int = 100

    @classmethod
    def from_settings(cls, settings) -> ExamConfig:
        return cls(
            initial_difficulty=settings.exam_initial_difficulty,
            adaptive_min_questions=settings.adaptive_min_questions,
            adaptive_max_questions=settings.adaptive_max_questions,
            adaptive_mastery_threshold=settings.adaptive_mastery_threshold,
            standard_question_limit=settings.standard_question_limit,
            standard_question_count=settings.standard_question_count,
            standard_min_questions=settings.standard_min_questions,
            standard_max_questions=settings.standard_max_questions,
        )


def step_difficulty(current: int, is_correct: bool, config: ExamConfig) -> int:
    """Move one tier up on a correct answer, one down otherwise, within bounds."""
    target = current + 1 if is_correct else current - 1
    return int(max(config.min_difficulty, min(config.max_difficulty, target)))


def should_terminate(
    mode: ExamMode,
    answered_count: int,
    mastery_estimate: float,
    config: ExamConfig,
) -> bool:
    if mode == ExamMode.ADAPTIVE:
        if answered_count < config.adaptive_min_questions:
            return False
        return (
            mastery_estimate >= config.adaptive_mastery_threshold
            or answered_count >= config.adaptive_max_questions
        )
    return answered_count > config.standard_question_limit


def initial_question_target(
    mode: ExamMode,
    config: ExamConfig,
    question_count: int | None = None,
) -> int:
    """
    Pool size to request when a session starts.

    Adaptive sessions start with the minimum length and grow later;
    standard sessions fix their size up front.
    """
    if mode == ExamMode.ADAPTIVE:
        return config.adaptive_min_questions

    count = config.standard_question_count if question_count is None else question_count
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidQuestionCount(count, config.standard_min_questions, config.standard_max_questions)
    if not config.standard_min_questions <= count <= config.standard_max_questions:
        raise InvalidQuestionCount(count, config.standard_min_questions, config.standard_max_questions)
    return count


def apply_answer(
    session: ExamSession,
    item_id: str,
    is_correct: bool,
    time_spent_ms: int,
    now: datetime,
    config: ExamConfig,
) -> ExamSession:
    """
    Return a new session with one answer applied.

    The caller guarantees the session is active.
    """
    updated = copy.deepcopy(session)

    updated.answers.append(
        AnswerRecord(
            item_id=item_id,
            is_correct=is_correct,
            time_spent_ms=time_spent_ms,
            difficulty=session.current_difficulty,
            answered_at=now,
        )
    )
    updated.answered_count += 1
    if is_correct:
        updated.correct_count += 1
    updated.mastery_estimate = updated.correct_count / updated.answered_count

    if updated.mode == ExamMode.ADAPTIVE:
        updated.current_difficulty = step_difficulty(updated.current_difficulty, is_correct, config)

    if should_terminate(updated.mode, updated.answered_count, updated.mastery_estimate, config):
        updated.status = SessionStatus.COMPLETED
        updated.completed_at = now
    elif (
        updated.mode == ExamMode.ADAPTIVE
        and updated.answered_count >= updated.question_target
        and updated.question_target < config.adaptive_max_questions
    ):
        # Minimum reached without clearing the bar: extend to the full length
        updated.question_target = config.adaptive_max_questions

    return updated
