"""In-process count tables."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from ..types import CategoryCounts, Feature, WordCounts
from .base import AsyncBackend, SyncBackend, build_snapshot, parse_snapshot

LOGGER = logging.getLogger(__name__)


class CountTable:
    """Unsynchronised category and word count tables; callers hold the lock."""

    def __init__(
        self,
        categories: CategoryCounts | None = None,
        words: WordCounts | None = None,
    ) -> None:
        self.categories: CategoryCounts = dict(categories or {})
        self.words: WordCounts = {
            feature: dict(counts) for feature, counts in (words or {}).items()
        }

    def copy(self) -> CountTable:
        return CountTable(self.categories, self.words)

    def word_counts(self, features: Iterable[Feature]) -> WordCounts:
        found: WordCounts = {}
        for feature in features:
            counts = self.words.get(feature)
            if counts:
                found[feature] = dict(counts)
        return found

    def apply(
        self,
        categories: Mapping[Any, int],
        words: Mapping[Feature, Mapping[Any, int]],
    ) -> None:
        _check_increments(categories, words)
        for category, amount in categories.items():
            self.categories[category] = self.categories.get(category, 0) + amount
        for feature, counts in words.items():
            stored = self.words.setdefault(feature, {})
            for category, amount in counts.items():
                stored[category] = stored.get(category, 0) + amount
                self.categories.setdefault(category, 0)

    def snapshot(self) -> dict[str, Any]:
        return build_snapshot(self.categories, self.words)

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> CountTable:
        categories, words = parse_snapshot(snapshot)
        return cls(categories, words)


class MemoryBackend(SyncBackend):
    """Synchronous backend keeping counts in a dict guarded by one lock."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._table = CountTable()

    def get_categories(self) -> CategoryCounts:
        with self._lock:
            return dict(self._table.categories)

    def get_word_counts(
        self, features: Iterable[Feature], categories: CategoryCounts
    ) -> WordCounts:
        with self._lock:
            return self._table.word_counts(features)

    def increment_counts(self, categories: CategoryCounts, words: WordCounts) -> bool:
        with self._lock:
            self._commit_increments(categories, words)
        return True

    def export_state(self) -> dict[str, Any]:
        with self._lock:
            return self._table.snapshot()

    def import_state(self, snapshot: Mapping[str, Any]) -> None:
        table = CountTable.from_snapshot(snapshot)
        with self._lock:
            self._commit_table(table)
        LOGGER.debug(
            "Imported %d categories and %d features", len(table.categories), len(table.words)
        )

    def _commit_increments(self, categories: CategoryCounts, words: WordCounts) -> None:
        self._table.apply(categories, words)

    def _commit_table(self, table: CountTable) -> None:
        self._table = table


class AsyncMemoryBackend(AsyncBackend):
    """Asynchronous in-process backend, serialised through an ``asyncio.Lock``."""

    name = "async-memory"

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._table = CountTable()

    async def get_categories(self) -> CategoryCounts:
        async with self._lock:
            return dict(self._table.categories)

    async def get_word_counts(
        self, features: Iterable[Feature], categories: CategoryCounts
    ) -> WordCounts:
        async with self._lock:
            return self._table.word_counts(features)

    async def increment_counts(self, categories: CategoryCounts, words: WordCounts) -> bool:
        async with self._lock:
            self._table.apply(categories, words)
        return True

    async def export_state(self) -> dict[str, Any]:
        async with self._lock:
            return self._table.snapshot()

    async def import_state(self, snapshot: Mapping[str, Any]) -> None:
        table = CountTable.from_snapshot(snapshot)
        async with self._lock:
            self._table = table


def _check_increments(
    categories: Mapping[Any, int], words: Mapping[Feature, Mapping[Any, int]]
) -> None:
    amounts = list(categories.values())
    for counts in words.values():
        amounts.extend(counts.values())
    if any(amount < 0 for amount in amounts):
        raise ValueError("Count increments must be non-negative.")


__all__ = ["AsyncMemoryBackend", "CountTable", "MemoryBackend"]
