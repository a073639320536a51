"""
Error taxonomy for the adaptive scheduler.

Three families, kept apart so callers can tell "your input was invalid"
from "the system is degraded":

- InvalidInput: rejected before any state is read or written
- SessionStateError: stale or closed session references
- ConcurrencyExhausted / CollaboratorUnavailable: infrastructure failures

WriteConflict is internal: stores raise it on a failed compare-and-swap and
the engines turn repeated conflicts into ConcurrencyExhausted.
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every error raised by the scheduler core."""


# =============================================================================
# Validation
# =============================================================================


class InvalidInput(SchedulerError):
    """Caller supplied a value outside its allowed domain."""


class InvalidQuality(InvalidInput):
    """Review quality was not an integer in 0-5."""

    def __init__(self, quality: object):
        self.quality = quality
        super().__init__(f"Quality must be an integer between 0 and 5, got {quality!r}")


class InvalidDifficultyHint(InvalidInput):
    """Difficulty hint was not one of easy/medium/hard."""

    def __init__(self, hint: object):
        self.hint = hint
        super().__init__(f"Difficulty hint must be easy, medium or hard, got {hint!r}")


class InvalidExamMode(InvalidInput):
    """Exam mode was not adaptive or standard."""

    def __init__(self, mode: object):
        self.mode = mode
        super().__init__(f"Exam mode must be adaptive or standard, got {mode!r}")


class InvalidQuestionCount(InvalidInput):
    """Standard exam pool size outside the allowed range."""

    def __init__(self, count: object, minimum: int, maximum: int):
        self.count = count
        super().__init__(
            f"Standard exams take between {minimum} and {maximum} questions, got {count!r}"
        )


class InvalidTimeSpent(InvalidInput):
    """Answer time was negative or not an integer."""

    def __init__(self, time_spent_ms: object):
        self.time_spent_ms = time_spent_ms
        super().__init__(f"Time spent must be a non-negative integer (ms), got {time_spent_ms!r}")


class InvalidCorrectness(InvalidInput):
    """Answer correctness was not a bool."""

    def __init__(self, is_correct: object):
        self.is_correct = is_correct
        super().__init__(f"Answer correctness must be True or False, got {is_correct!r}")


# =============================================================================
# Session state
# =============================================================================


class SessionStateError(SchedulerError):
    """Logical misuse of an exam session reference."""


class SessionNotFound(SessionStateError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Exam session not found: {session_id}")


class SessionClosed(SessionStateError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Exam session already completed: {session_id}")


# =============================================================================
# Infrastructure
# =============================================================================


class WriteConflict(SchedulerError):
    """A versioned save lost the race against another writer."""

    def __init__(self, key: object, expected_version: int):
        self.key = key
        self.expected_version = expected_version
        super().__init__(f"Concurrent write detected for {key!r} (expected version {expected_version})")


class ConcurrencyExhausted(SchedulerError):
    """Every retry of a conflicting write failed."""

    def __init__(self, key: object, attempts: int):
        self.key = key
        self.attempts = attempts
        super().__init__(f"Gave up on {key!r} after {attempts} conflicting writes")


class CollaboratorUnavailable(SchedulerError):
    """An external dependency (question bank, clock, persistence) failed."""

    def __init__(self, collaborator: str, reason: str):
        self.collaborator = collaborator
        self.reason = reason
        super().__init__(f"{collaborator} unavailable: {reason}")
