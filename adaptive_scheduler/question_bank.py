"""
Question Bank collaborators.

The scheduler only needs one call: fetch an item at a difficulty, skipping
items already served. Payloads are passed through untouched.

Usage:
    bank = HttpQuestionBank(base_url="https://bank.example.com", api_key="...")
    item = bank.fetch_item(2, exclude_ids={"q-1", "q-7"})
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from loguru import logger

from .errors import CollaboratorUnavailable


@dataclass(frozen=True)
class Item:
    """A question handed out by the bank."""

    id: str
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Item:
        return cls(id=str(data["id"]), payload=dict(data.get("payload") or {}))


class QuestionBank(Protocol):
    def fetch_item(self, difficulty: int, exclude_ids: Iterable[str]) -> Item | None: ...


class InMemoryQuestionBank:
    """Serves items from fixed per-difficulty lists, in order."""

    def __init__(self, items_by_difficulty: Mapping[int, Iterable[Item]] | None = None):
        self._items: dict[int, list[Item]] = {
            int(d): list(items) for d, items in (items_by_difficulty or {}).items()
        }

    def add(self, difficulty: int, item: Item) -> None:
        self._items.setdefault(difficulty, []).append(item)

    def fetch_item(self, difficulty: int, exclude_ids: Iterable[str]) -> Item | None:
        excluded = set(exclude_ids)
        for item in self._items.get(difficulty, []):
            if item.id not in excluded:
                return item
        return None


class HttpQuestionBank:
    """
    HTTP client for a remote question bank.

    GET {base_url}/items?difficulty=N&exclude=a,b
    - 200: item JSON ({"id": ..., "payload": {...}})
    - 204/404: nothing left at that difficulty
    - anything else, or a transport error: CollaboratorUnavailable
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self.client = client or httpx.Client(base_url=base_url, headers=headers, timeout=timeout)

    @classmethod
    def from_settings(cls, settings) -> HttpQuestionBank:
        return cls(
            base_url=settings.question_bank_url,
            api_key=settings.question_bank_api_key,
            timeout=settings.question_bank_timeout,
        )

    def __enter__(self) -> HttpQuestionBank:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def fetch_item(self, difficulty: int, exclude_ids: Iterable[str]) -> Item | None:
        params: dict[str, Any] = {"difficulty": int(difficulty)}
        excluded = sorted(set(exclude_ids))
        if excluded:
            params["exclude"] = ",".join(excluded)

        try:
            response = self.client.get("/items", params=params)
        except httpx.RequestError as e:
            logger.error(f"Question bank request failed: {e}")
            raise CollaboratorUnavailable("question bank", str(e)) from e

        if response.status_code in (204, 404):
            logger.debug(f"Question bank has no item at difficulty {difficulty}")
            return None

        try:
            response.raise_for_status()
            return Item.from_dict(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(f"Question bank error {response.status_code}: {response.text[:200]}")
            raise CollaboratorUnavailable("question bank", f"HTTP {response.status_code}") from e
        except (ValueError, KeyError) as e:
            logger.error(f"Malformed question bank response: {e}")
            raise CollaboratorUnavailable("question bank", f"malformed response: {e}") from e
