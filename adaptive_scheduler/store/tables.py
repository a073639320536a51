"""
SQLAlchemy models for scheduler persistence.

- ReviewCardRow: SM-2 state per learner per item
- ExamSessionRow: adaptive/standard exam attempts
- ExamAnswerRow: ordered answer history of a session

Timestamps are stored as naive UTC.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class ReviewCardRow(Base):
    """
    Spaced repetition state per learner per item.

    Created on first review, never deleted.
    """

    __tablename__ = "review_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    learner_id: Mapped[str] = mapped_column(Text, nullable=False)
    item_id: Mapped[str] = mapped_column(Text, nullable=False)

    # SM-2 state
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    interval_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_review_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Outcome tracking
    last_outcome: Mapped[str] = mapped_column(String(16), nullable=False, default="not_reviewed")
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime | None] = mapped_column(DateTime)

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("learner_id", "item_id", name="uq_review_card_learner_item"),
        Index("idx_review_card_due", "learner_id", "next_review_at"),
    )

    def __repr__(self) -> str:
        return f"<ReviewCardRow learner={self.learner_id} item={self.item_id} next={self.next_review_at}>"


class ExamSessionRow(Base):
    """One adaptive or standard exam attempt."""

    __tablename__ = "exam_sessions"

    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    learner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    mode: Mapped[str] = mapped_column(String(16), nullable=False)  # 'adaptive', 'standard'
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")

    # Progress
    answered_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_difficulty: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    mastery_estimate: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)
    question_target: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    answers: Mapped[list[ExamAnswerRow]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ExamAnswerRow.position",
    )

    __table_args__ = (Index("idx_exam_session_active", "learner_id", "status"),)

    def __repr__(self) -> str:
        return f"<ExamSessionRow id={self.session_id} learner={self.learner_id} status={self.status}>"


class ExamAnswerRow(Base):
    """Individual answers within an exam session."""

    __tablename__ = "exam_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        ForeignKey("exam_sessions.session_id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_spent_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    session: Mapped[ExamSessionRow] = relationship(back_populates="answers")

    __table_args__ = (
        UniqueConstraint("session_id", "position", name="uq_exam_answer_position"),
    )
