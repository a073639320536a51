"""
Adaptive learning scheduler core.

Two cooperating engines over externally persisted records:
- ReviewScheduler: SM-2 spaced repetition per (learner, item)
- ExamEngine: difficulty stepping and termination for CAT/standard exams

Both take their store, clock and question bank as explicit collaborators.
"""

from .clock import Clock, FrozenClock, SystemClock
from .errors import (
    CollaboratorUnavailable,
    ConcurrencyExhausted,
    InvalidCorrectness,
    InvalidDifficultyHint,
    InvalidExamMode,
    InvalidInput,
    InvalidQuality,
    InvalidQuestionCount,
    InvalidTimeSpent,
    SchedulerError,
    SessionClosed,
    SessionNotFound,
    SessionStateError,
)
from .exam import ExamConfig, ExamEngine
from .models import (
    AnswerRecord,
    AnswerResult,
    Difficulty,
    ExamMode,
    ExamSession,
    PerformanceRecord,
    ReviewCard,
    ReviewOutcome,
    SessionStatus,
)
from .question_bank import HttpQuestionBank, InMemoryQuestionBank, Item, QuestionBank
from .review import PerformanceAggregator, QualityMapper, ReviewScheduler, SM2Config, SM2Scheduler
from .service import AnswerOutcome, LearningService, build_service
from .store import InMemoryStore, SqlStore

__version__ = "0.1.0"

__all__ = [
    # Engines
    "ReviewScheduler",
    "ExamEngine",
    "LearningService",
    "build_service",
    "AnswerOutcome",
    # Algorithms
    "SM2Config",
    "SM2Scheduler",
    "QualityMapper",
    "PerformanceAggregator",
    "ExamConfig",
    # Records
    "ReviewCard",
    "ReviewOutcome",
    "ExamSession",
    "ExamMode",
    "SessionStatus",
    "Difficulty",
    "AnswerRecord",
    "AnswerResult",
    "PerformanceRecord",
    # Collaborators
    "Clock",
    "SystemClock",
    "FrozenClock",
    "QuestionBank",
    "HttpQuestionBank",
    "InMemoryQuestionBank",
    "Item",
    "InMemoryStore",
    "SqlStore",
    # Errors
    "SchedulerError",
    "InvalidInput",
    "InvalidQuality",
    "InvalidCorrectness",
    "InvalidDifficultyHint",
    "InvalidExamMode",
    "InvalidQuestionCount",
    "InvalidTimeSpent",
    "SessionStateError",
    "SessionNotFound",
    "SessionClosed",
    "ConcurrencyExhausted",
    "CollaboratorUnavailable",
]
