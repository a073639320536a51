"""
In-memory store for tests and embedded use.

Records are deep-copied on the way in and out so callers never share
mutable state with the store.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from dataclasses import replace
from datetime import datetime

from ..errors import WriteConflict
from ..models import ExamSession, ReviewCard


class InMemoryStore:
    """Dict-backed ReviewStore and SessionStore with atomic versioned saves."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cards: dict[tuple[str, str], ReviewCard] = {}
        self._sessions: dict[str, ExamSession] = {}

    # =========================================================================
    # Review cards
    # =========================================================================

    def load_card(self, learner_id: str, item_id: str) -> ReviewCard | None:
        with self._lock:
            card = self._cards.get((learner_id, item_id))
            return copy.deepcopy(card) if card is not None else None

    def save_card(self, card: ReviewCard) -> ReviewCard:
        key = card.key
        with self._lock:
            current = self._cards.get(key)
            current_version = current.version if current is not None else 0
            if current_version != card.version:
                raise WriteConflict(key, card.version)

            stored = replace(card, version=card.version + 1)
            self._cards[key] = stored
            return copy.deepcopy(stored)

    def iter_cards(self, learner_id: str) -> Iterator[ReviewCard]:
        with self._lock:
            cards = [copy.deepcopy(c) for c in self._cards.values() if c.learner_id == learner_id]
        yield from cards

    def iter_due_cards(self, learner_id: str, as_of: datetime) -> Iterator[ReviewCard]:
        with self._lock:
            due = [
                copy.deepcopy(c)
                for c in self._cards.values()
                if c.learner_id == learner_id and c.next_review_at <= as_of
            ]
        due.sort(key=lambda c: (c.next_review_at, c.item_id))
        yield from due

    # =========================================================================
    # Exam sessions
    # =========================================================================

    def load_session(self, session_id: str) -> ExamSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session) if session is not None else None

    def save_session(self, session: ExamSession) -> ExamSession:
        with self._lock:
            current = self._sessions.get(session.session_id)
            current_version = current.version if current is not None else 0
            if current_version != session.version:
                raise WriteConflict(session.session_id, session.version)

            stored = copy.deepcopy(session)
            stored.version = session.version + 1
            self._sessions[session.session_id] = stored
            return copy.deepcopy(stored)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cards) + len(self._sessions)
