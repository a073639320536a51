"""
SQLAlchemy-backed store.

Works against PostgreSQL in production and SQLite in tests. Versioned saves
are a single ``UPDATE ... WHERE version = :expected`` (or an INSERT guarded by
the natural-key unique constraint), so two writers racing on one record can
never both succeed.
"""

from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import create_engine, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import CollaboratorUnavailable, WriteConflict
from ..models import AnswerRecord, ExamMode, ExamSession, ReviewCard, ReviewOutcome, SessionStatus
from .tables import Base, ExamAnswerRow, ExamSessionRow, ReviewCardRow


def _to_db(moment: datetime | None) -> datetime | None:
    """Normalize to naive UTC for storage."""
    if moment is None:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC).replace(tzinfo=None)
    return moment


def _from_db(moment: datetime | None) -> datetime | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


class SqlStore:
    """ReviewStore and SessionStore on a SQLAlchemy engine."""

    def __init__(self, engine: Engine, create_schema: bool = True):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        if create_schema:
            self.init_schema()

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False, create_schema: bool = True) -> SqlStore:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
        return cls(engine, create_schema=create_schema)

    @classmethod
    def from_settings(cls, settings) -> SqlStore:
        return cls.from_url(settings.database_url, echo=settings.database_echo)

    def init_schema(self) -> None:
        """Create tables that do not exist yet."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Schema initialization failed: {e}")
            raise CollaboratorUnavailable("persistence", str(e)) from e
        logger.debug("Scheduler tables initialized")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except (OperationalError, InterfaceError) as e:
            session.rollback()
            logger.error(f"Database unavailable: {e}")
            raise CollaboratorUnavailable("persistence", str(e)) from e
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # Review cards
    # =========================================================================

    @staticmethod
    def _card_from_row(row: ReviewCardRow) -> ReviewCard:
        return ReviewCard(
            learner_id=row.learner_id,
            item_id=row.item_id,
            next_review_at=_from_db(row.next_review_at),
            ease_factor=row.ease_factor,
            interval=row.interval_days,
            repetitions=row.repetitions,
            last_outcome=ReviewOutcome(row.last_outcome),
            review_count=row.review_count,
            created_at=_from_db(row.created_at),
            last_reviewed_at=_from_db(row.last_reviewed_at),
            version=row.version,
        )

    @staticmethod
    def _card_values(card: ReviewCard) -> dict:
        return {
            "ease_factor": card.ease_factor,
            "interval_days": card.interval,
            "repetitions": card.repetitions,
            "next_review_at": _to_db(card.next_review_at),
            "last_outcome": card.last_outcome.value,
            "review_count": card.review_count,
            "last_reviewed_at": _to_db(card.last_reviewed_at),
            "created_at": _to_db(card.created_at),
        }

    def load_card(self, learner_id: str, item_id: str) -> ReviewCard | None:
        stmt = select(ReviewCardRow).where(
            ReviewCardRow.learner_id == learner_id,
            ReviewCardRow.item_id == item_id,
        )
        with self.session_scope() as db:
            row = db.scalars(stmt).one_or_none()
            return self._card_from_row(row) if row is not None else None

    def save_card(self, card: ReviewCard) -> ReviewCard:
        new_version = card.version + 1
        values = self._card_values(card)

        with self.session_scope() as db:
            if card.version == 0:
                db.add(
                    ReviewCardRow(
                        learner_id=card.learner_id,
                        item_id=card.item_id,
                        version=new_version,
                        **values,
                    )
                )
                try:
                    db.flush()
                except IntegrityError as e:
                    raise WriteConflict(card.key, card.version) from e
            else:
                result = db.execute(
                    update(ReviewCardRow)
                    .where(
                        ReviewCardRow.learner_id == card.learner_id,
                        ReviewCardRow.item_id == card.item_id,
                        ReviewCardRow.version == card.version,
                    )
                    .values(version=new_version, **values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise WriteConflict(card.key, card.version)

        return replace(card, version=new_version)

    def iter_cards(self, learner_id: str) -> Iterator[ReviewCard]:
        stmt = (
            select(ReviewCardRow)
            .where(ReviewCardRow.learner_id == learner_id)
            .order_by(ReviewCardRow.id)
        )
        with self.session_scope() as db:
            for row in db.scalars(stmt):
                yield self._card_from_row(row)

    def iter_due_cards(self, learner_id: str, as_of: datetime) -> Iterator[ReviewCard]:
        stmt = (
            select(ReviewCardRow)
            .where(
                ReviewCardRow.learner_id == learner_id,
                ReviewCardRow.next_review_at <= _to_db(as_of),
            )
            .order_by(ReviewCardRow.next_review_at, ReviewCardRow.item_id)
        )
        with self.session_scope() as db:
            for row in db.scalars(stmt):
                yield self._card_from_row(row)

    # =========================================================================
    # Exam sessions
    # =========================================================================

    @staticmethod
    def _session_from_row(row: ExamSessionRow) -> ExamSession:
        return ExamSession(
            session_id=row.session_id,
            learner_id=row.learner_id,
            mode=ExamMode(row.mode),
            started_at=_from_db(row.started_at),
            question_target=row.question_target,
            current_difficulty=row.current_difficulty,
            answered_count=row.answered_count,
            correct_count=row.correct_count,
            mastery_estimate=row.mastery_estimate,
            status=SessionStatus(row.status),
            completed_at=_from_db(row.completed_at),
            answers=[
                AnswerRecord(
                    item_id=a.item_id,
                    is_correct=a.is_correct,
                    time_spent_ms=a.time_spent_ms,
                    difficulty=a.difficulty,
                    answered_at=_from_db(a.answered_at),
                )
                for a in row.answers
            ],
            version=row.version,
        )

    @staticmethod
    def _session_values(session: ExamSession) -> dict:
        return {
            "mode": session.mode.value,
            "status": session.status.value,
            "answered_count": session.answered_count,
            "correct_count": session.correct_count,
            "current_difficulty": session.current_difficulty,
            "mastery_estimate": session.mastery_estimate,
            "question_target": session.question_target,
            "started_at": _to_db(session.started_at),
            "completed_at": _to_db(session.completed_at),
        }

    @staticmethod
    def _answer_row(session_id: str, position: int, answer: AnswerRecord) -> ExamAnswerRow:
        return ExamAnswerRow(
            session_id=session_id,
            position=position,
            item_id=answer.item_id,
            is_correct=answer.is_correct,
            time_spent_ms=answer.time_spent_ms,
            difficulty=answer.difficulty,
            answered_at=_to_db(answer.answered_at),
        )

    def load_session(self, session_id: str) -> ExamSession | None:
        with self.session_scope() as db:
            row = db.get(ExamSessionRow, session_id)
            return self._session_from_row(row) if row is not None else None

    def save_session(self, session: ExamSession) -> ExamSession:
        new_version = session.version + 1
        values = self._session_values(session)

        with self.session_scope() as db:
            if session.version == 0:
                db.add(
                    ExamSessionRow(
                        session_id=session.session_id,
                        learner_id=session.learner_id,
                        version=new_version,
                        **values,
                    )
                )
                try:
                    db.flush()
                except IntegrityError as e:
                    raise WriteConflict(session.session_id, session.version) from e
                stored_answers = 0
            else:
                result = db.execute(
                    update(ExamSessionRow)
                    .where(
                        ExamSessionRow.session_id == session.session_id,
                        ExamSessionRow.version == session.version,
                    )
                    .values(version=new_version, **values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise WriteConflict(session.session_id, session.version)
                stored_answers = db.scalar(
                    select(func.count())
                    .select_from(ExamAnswerRow)
                    .where(ExamAnswerRow.session_id == session.session_id)
                )

            # Answer history is append-only
            for position, answer in enumerate(session.answers[stored_answers:], start=stored_answers):
                db.add(self._answer_row(session.session_id, position, answer))

        return replace(session, answers=list(session.answers), version=new_version)
