"""Persistence adapters for review cards and exam sessions."""

from .base import ReviewStore, SessionStore
from .memory import InMemoryStore
from .sql import SqlStore

__all__ = [
    "ReviewStore",
    "SessionStore",
    "InMemoryStore",
    "SqlStore",
]
