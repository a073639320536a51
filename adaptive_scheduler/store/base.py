"""
Persistence contracts.

Saves are compare-and-swap on ``version``: the record passed in carries the
version that was read (0 for a new record). A store accepts the write only if
the stored version still matches, persists it with ``version + 1`` and returns
the stored copy. Otherwise it raises WriteConflict and changes nothing.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import Protocol

from ..models import ExamSession, ReviewCard


class ReviewStore(Protocol):
    def load_card(self, learner_id: str, item_id: str) -> ReviewCard | None: ...

    def save_card(self, card: ReviewCard) -> ReviewCard: ...

    def iter_cards(self, learner_id: str) -> Iterator[ReviewCard]: ...

    def iter_due_cards(self, learner_id: str, as_of: datetime) -> Iterator[ReviewCard]:
        """Cards with next_review_at <= as_of, most overdue first."""
        ...


class SessionStore(Protocol):
    def load_session(self, session_id: str) -> ExamSession | None: ...

    def save_session(self, session: ExamSession) -> ExamSession: ...
