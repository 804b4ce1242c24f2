"""Redis backed asynchronous count store."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from redis import asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from ..types import CategoryCounts, Feature, WordCounts
from .base import (
    SNAPSHOT_CATEGORIES,
    SNAPSHOT_WORDS,
    AsyncBackend,
    BackendFailure,
    decode_category,
    encode_category,
    encode_feature,
    parse_snapshot,
)

LOGGER = logging.getLogger(__name__)
DEFAULT_URL = "redis://localhost:6379/0"
DEFAULT_PREFIX = "bayesian"


class RedisBackend(AsyncBackend):
    """Counts stored in Redis hashes.

    Layout under ``prefix``:

    * ``<prefix>:categories`` hash of encoded category -> document count
    * ``<prefix>:features`` set of every encoded feature seen
    * ``<prefix>:word:<encoded feature>`` hash of encoded category -> document count

    Every batch is applied inside one MULTI/EXEC transaction. Every batch also
    bumps the categories hash, so watching that key is enough to detect a
    concurrent write during multi-step reads. Word counts handed back by
    ``get_word_counts`` never exceed the category totals the caller read.
    """

    name = "redis"

    def __init__(
        self,
        url: str = DEFAULT_URL,
        *,
        prefix: str = DEFAULT_PREFIX,
        client: Any | None = None,
        socket_timeout: float | None = 5.0,
    ) -> None:
        self.prefix = prefix
        self._client = client or aioredis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    @property
    def categories_key(self) -> str:
        return f"{self.prefix}:categories"

    @property
    def features_key(self) -> str:
        return f"{self.prefix}:features"

    def word_key(self, feature: Feature) -> str:
        return self._word_key(encode_feature(feature))

    def _word_key(self, encoded: str) -> str:
        return f"{self.prefix}:word:{encoded}"

    async def get_categories(self) -> CategoryCounts:
        with _translate_errors("get_categories"):
            raw = await self._client.hgetall(self.categories_key)
        return _decode_counts(raw)

    async def get_word_counts(
        self, features: Iterable[Feature], categories: CategoryCounts
    ) -> WordCounts:
        features = list(features)
        if not features:
            return {}
        with _translate_errors("get_word_counts"):
            async with self._client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(self.categories_key)
                        current = _decode_counts(await pipe.hgetall(self.categories_key))
                        pipe.multi()
                        for feature in features:
                            pipe.hgetall(self.word_key(feature))
                        rows = await pipe.execute()
                        break
                    except WatchError:
                        LOGGER.debug("Counts changed while reading %s; retrying", self.prefix)
                        continue
        counts = {feature: _decode_counts(row) for feature, row in zip(features, rows) if row}
        if current == dict(categories):
            return counts
        # A batch landed after the caller read the categories.
        LOGGER.debug("Clamping word counts to the categories read before a concurrent batch")
        return {
            feature: {
                category: min(count, categories[category])
                for category, count in row.items()
                if category in categories
            }
            for feature, row in counts.items()
        }

    async def increment_counts(self, categories: CategoryCounts, words: WordCounts) -> bool:
        with _translate_errors("increment_counts"):
            async with self._client.pipeline(transaction=True) as pipe:
                for category, amount in categories.items():
                    pipe.hincrby(self.categories_key, encode_category(category), int(amount))
                for feature, counts in words.items():
                    pipe.sadd(self.features_key, encode_feature(feature))
                    for category, amount in counts.items():
                        pipe.hincrby(self.word_key(feature), encode_category(category), int(amount))
                await pipe.execute()
        LOGGER.debug(
            "Committed %d category and %d feature increments to %s",
            len(categories),
            len(words),
            self.prefix,
        )
        return True

    async def export_state(self) -> dict[str, Any]:
        with _translate_errors("export_state"):
            async with self._client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        await pipe.watch(self.categories_key)
                        raw_categories = await pipe.hgetall(self.categories_key)
                        encoded = sorted(await pipe.smembers(self.features_key))
                        pipe.multi()
                        for key in encoded:
                            pipe.hgetall(self._word_key(key))
                        rows = await pipe.execute()
                        break
                    except WatchError:
                        LOGGER.debug("Counts changed during export of %s; retrying", self.prefix)
                        continue
        words = {key: _raw_counts(row) for key, row in zip(encoded, rows) if row}
        return {SNAPSHOT_CATEGORIES: _raw_counts(raw_categories), SNAPSHOT_WORDS: words}

    async def import_state(self, snapshot: Mapping[str, Any]) -> None:
        categories, words = parse_snapshot(snapshot)
        with _translate_errors("import_state"):
            existing = await self._client.smembers(self.features_key)
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(
                    self.categories_key,
                    self.features_key,
                    *(self._word_key(encoded) for encoded in existing),
                )
                if categories:
                    pipe.hset(
                        self.categories_key,
                        mapping={
                            encode_category(category): count
                            for category, count in categories.items()
                        },
                    )
                for feature, counts in words.items():
                    if not counts:
                        continue
                    pipe.sadd(self.features_key, encode_feature(feature))
                    pipe.hset(
                        self.word_key(feature),
                        mapping={
                            encode_category(category): count for category, count in counts.items()
                        },
                    )
                await pipe.execute()

    async def close(self) -> None:
        with _translate_errors("close"):
            await self._client.aclose()


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (RedisError, OSError) as exc:
        raise BackendFailure(f"Redis {operation} failed: {exc}") from exc


def _decode_counts(raw: Mapping[str, Any]) -> dict[Any, int]:
    return {decode_category(key): int(value) for key, value in raw.items()}


def _raw_counts(raw: Mapping[str, Any]) -> dict[str, int]:
    return {key: int(value) for key, value in raw.items()}


__all__ = ["DEFAULT_PREFIX", "DEFAULT_URL", "RedisBackend"]
