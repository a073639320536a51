"""
Adaptive Exam Engine.

Runs the active -> completed state machine for exam sessions. Item
selection stays with the question bank; the engine only decides the target
difficulty and when to stop.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable

from loguru import logger

from ..clock import Clock, SystemClock, read_clock
from ..concurrency import KeyedLock, retry_on_conflict
from ..errors import (
    CollaboratorUnavailable,
    InvalidCorrectness,
    InvalidTimeSpent,
    SessionClosed,
    SessionNotFound,
)
from ..models import AnswerResult, Difficulty, ExamMode, ExamSession
from ..question_bank import Item, QuestionBank
from ..store.base import SessionStore
from .policy import ExamConfig, apply_answer, initial_question_target


def _new_session_id() -> str:
    return uuid.uuid4().hex


class ExamEngine:
    """
    Difficulty selection and termination for exam sessions.

    Operations:
    - start_session: open an adaptive or standard session
    - submit_answer: record one answer, step difficulty, maybe complete
    - next_item: ask the question bank for the next question
    """

    def __init__(
        self,
        store: SessionStore,
        clock: Clock | None = None,
        question_bank: QuestionBank | None = None,
        config: ExamConfig | None = None,
        locks: KeyedLock | None = None,
        write_attempts: int = 3,
        id_factory: Callable[[], str] = _new_session_id,
    ):
        """
        Initialize the engine.

        Args:
            store: Persistence for exam sessions
            clock: Time source (system UTC clock if None)
            question_bank: Source of questions, required only for next_item
            config: Termination and pool settings (defaults if None)
            locks: Per-key lock registry, share it between instances on one store
            write_attempts: Attempts before a conflicting write is abandoned
            id_factory: Session id generator
        """
        self.store = store
        self.clock = clock or SystemClock()
        self.question_bank = question_bank
        self.config = config or ExamConfig()
        self.locks = locks or KeyedLock()
        self.write_attempts = write_attempts
        self.id_factory = id_factory

    def start_session(
        self,
        learner_id: str,
        mode: ExamMode | str,
        difficulty_hint: str | None = None,
        question_count: int | None = None,
    ) -> ExamSession:
        """
        Open a new exam session.

        Args:
            learner_id: Learner taking the exam
            mode: "adaptive" or "standard"
            difficulty_hint: "easy", "medium" or "hard" (medium if None)
            question_count: Standard mode pool size (25-100); ignored for adaptive

        Returns:
            The stored, active ExamSession
        """
        mode = ExamMode.parse(mode)
        difficulty = Difficulty.from_hint(difficulty_hint, default=self.config.initial_difficulty)
        question_target = initial_question_target(mode, self.config, question_count)

        def attempt() -> ExamSession:
            now = read_clock(self.clock)
            session = ExamSession(
                session_id=self.id_factory(),
                learner_id=learner_id,
                mode=mode,
                started_at=now,
                question_target=question_target,
                current_difficulty=int(difficulty),
                mastery_estimate=self.config.initial_mastery,
            )
            return self.store.save_session(session)

        session = retry_on_conflict(attempt, ("session", "new", learner_id), self.write_attempts)

        logger.info(
            f"Exam session {session.session_id} started: learner={learner_id}, "
            f"mode={mode.value}, difficulty={session.current_difficulty}, "
            f"pool={session.question_target}"
        )
        return session

    def get_session(self, session_id: str) -> ExamSession:
        session = self.store.load_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def submit_answer(
        self,
        session_id: str,
        item_id: str,
        is_correct: bool,
        time_spent_ms: int,
    ) -> AnswerResult:
        """
        Record an answer within a session.

        Args:
            session_id: Target session
            item_id: Answered item
            is_correct: Whether the answer was correct
            time_spent_ms: Time spent on the item

        Returns:
            AnswerResult with the stored session and, while an adaptive
            session stays active, the difficulty for the next item

        Raises:
            SessionNotFound: unknown session id
            SessionClosed: session already completed (left untouched)
            InvalidCorrectness: is_correct is not a bool
            InvalidTimeSpent: negative or non-integer time
        """
        if isinstance(time_spent_ms, bool) or not isinstance(time_spent_ms, int) or time_spent_ms < 0:
            raise InvalidTimeSpent(time_spent_ms)
        if not isinstance(is_correct, bool):
            raise InvalidCorrectness(is_correct)
        key = ("session", session_id)

        def attempt() -> ExamSession:
            current = self.get_session(session_id)
            if not current.is_active:
                raise SessionClosed(session_id)
            now = read_clock(self.clock)
            updated = apply_answer(current, item_id, is_correct, time_spent_ms, now, self.config)
            return self.store.save_session(updated)

        with self.locks.hold(key):
            session = retry_on_conflict(attempt, key, self.write_attempts)

        logger.debug(
            f"Answer in {session_id}: item={item_id}, correct={is_correct}, "
            f"answered={session.answered_count}, mastery={session.mastery_estimate:.2f}, "
            f"difficulty={session.current_difficulty}"
        )

        if not session.is_active:
            logger.info(
                f"Exam session {session_id} completed after {session.answered_count} answers "
                f"(score {session.score}%)"
            )
            return AnswerResult(session=session, next_difficulty=None)

        next_difficulty = session.current_difficulty if session.is_adaptive else None
        return AnswerResult(session=session, next_difficulty=next_difficulty)

    def next_item(self, session_id: str) -> Item | None:
        """
        Fetch the next question at the session's current difficulty.

        Items already answered in this session are excluded. Returns None
        when the bank has nothing left at that difficulty.
        """
        if self.question_bank is None:
            raise CollaboratorUnavailable("question bank", "no question bank configured")

        session = self.get_session(session_id)
        if not session.is_active:
            raise SessionClosed(session_id)

        return self.question_bank.fetch_item(session.current_difficulty, session.answered_item_ids)
