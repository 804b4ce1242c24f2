"""Storage contract shared by every count backend."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..types import Category, CategoryCounts, Feature, WordCounts

SNAPSHOT_CATEGORIES = "cats"
SNAPSHOT_WORDS = "words"


class BackendFailure(RuntimeError):
    """Raised when the storage layer cannot complete a read or write."""


@dataclass(frozen=True)
class BackendConfig:
    """Backend selection plus constructor options."""

    type: str = "memory"
    options: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class Backend(Protocol):
    """Operations the classifier needs from a count store.

    ``is_async`` is fixed per backend class. When it is true every operation
    returns an awaitable. ``increment_counts`` must apply a whole batch
    atomically with respect to concurrent increments and reads.
    """

    name: str
    is_async: bool

    def get_categories(self) -> Any:
        """Return the number of trained documents per category."""

    def get_word_counts(self, features: Iterable[Feature], categories: CategoryCounts) -> Any:
        """Return per-category document counts for the requested features."""

    def increment_counts(self, categories: CategoryCounts, words: WordCounts) -> Any:
        """Apply one batch of increments."""

    def export_state(self) -> Any:
        """Return a JSON-serialisable snapshot of all counts."""

    def import_state(self, snapshot: Mapping[str, Any]) -> Any:
        """Replace all counts with the given snapshot."""

    def close(self) -> Any:
        """Release any held resources."""


class SyncBackend(ABC):
    """Base class for backends that complete inline."""

    name = "sync"
    is_async = False

    @abstractmethod
    def get_categories(self) -> CategoryCounts: ...

    @abstractmethod
    def get_word_counts(
        self, features: Iterable[Feature], categories: CategoryCounts
    ) -> WordCounts: ...

    @abstractmethod
    def increment_counts(self, categories: CategoryCounts, words: WordCounts) -> bool: ...

    @abstractmethod
    def export_state(self) -> dict[str, Any]: ...

    @abstractmethod
    def import_state(self, snapshot: Mapping[str, Any]) -> None: ...

    def close(self) -> None:
        return None


class AsyncBackend(ABC):
    """Base class for backends whose operations are coroutines."""

    name = "async"
    is_async = True

    @abstractmethod
    async def get_categories(self) -> CategoryCounts: ...

    @abstractmethod
    async def get_word_counts(
        self, features: Iterable[Feature], categories: CategoryCounts
    ) -> WordCounts: ...

    @abstractmethod
    async def increment_counts(self, categories: CategoryCounts, words: WordCounts) -> bool: ...

    @abstractmethod
    async def export_state(self) -> dict[str, Any]: ...

    @abstractmethod
    async def import_state(self, snapshot: Mapping[str, Any]) -> None: ...

    async def close(self) -> None:
        return None


def encode_category(category: Category) -> str:
    """Encode a category label as a string key that survives JSON round-trips."""

    return _encode_key(category, "Category")


def decode_category(key: str) -> Category:
    return _decode_key(key, "category")


def encode_feature(feature: Feature) -> str:
    """Encode a feature the same way, so ``1``, ``"1"`` and ``(1, 2)`` stay distinct."""

    return _encode_key(feature, "Feature")


def decode_feature(key: str) -> Feature:
    return _decode_key(key, "feature")


def build_snapshot(categories: CategoryCounts, words: WordCounts) -> dict[str, Any]:
    """Encode count tables into the snapshot layout shared by all backends."""

    return {
        SNAPSHOT_CATEGORIES: {
            encode_category(category): int(count) for category, count in categories.items()
        },
        SNAPSHOT_WORDS: {
            encode_feature(feature): {
                encode_category(category): int(count) for category, count in counts.items()
            }
            for feature, counts in words.items()
        },
    }


def parse_snapshot(snapshot: Mapping[str, Any]) -> tuple[CategoryCounts, WordCounts]:
    """Decode and validate a snapshot produced by :func:`build_snapshot`."""

    if not isinstance(snapshot, Mapping):
        raise BackendFailure("Snapshot must be a mapping.")
    raw_categories = snapshot.get(SNAPSHOT_CATEGORIES) or {}
    raw_words = snapshot.get(SNAPSHOT_WORDS) or {}
    if not isinstance(raw_categories, Mapping) or not isinstance(raw_words, Mapping):
        raise BackendFailure(
            f"Snapshot '{SNAPSHOT_CATEGORIES}' and '{SNAPSHOT_WORDS}' must be mappings."
        )

    categories = {
        decode_category(key): _count(value, key) for key, value in raw_categories.items()
    }
    words: WordCounts = {}
    for feature, raw_counts in raw_words.items():
        if not isinstance(raw_counts, Mapping):
            raise BackendFailure(f"Counts for feature {feature!r} must be a mapping.")
        counts = {decode_category(key): _count(value, key) for key, value in raw_counts.items()}
        for category in counts:
            categories.setdefault(category, 0)
        words[decode_feature(feature)] = counts
    return categories, words


def _encode_key(value: Any, kind: str) -> str:
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise BackendFailure(f"{kind} {value!r} cannot be serialised") from exc


def _decode_key(key: Any, kind: str) -> Any:
    try:
        value = json.loads(key)
    except (TypeError, ValueError) as exc:
        raise BackendFailure(f"Malformed {kind} key: {key!r}") from exc
    return _hashable(value)


def _count(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise BackendFailure(f"Invalid count {value!r} for {key!r}")
    return int(value)


def _hashable(value: Any) -> Category:
    if isinstance(value, list):
        return tuple(_hashable(item) for item in value)
    if isinstance(value, dict):
        raise BackendFailure("Mapping labels and features are not supported.")
    return value


__all__ = [
    "AsyncBackend",
    "Backend",
    "BackendConfig",
    "BackendFailure",
    "SyncBackend",
    "build_snapshot",
    "decode_category",
    "decode_feature",
    "encode_category",
    "encode_feature",
    "parse_snapshot",
]
