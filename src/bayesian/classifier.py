"""Classifier facade tying extraction, counting, estimation and decision together."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from .aggregator import CountIncrements, aggregate
from .backends import Backend, BackendConfig, create_backend
from .decision import best_match
from .estimator import category_scores
from .features import extract_features
from .types import (
    Category,
    CategoryCounts,
    ClassifierOptions,
    FeatureSet,
    LabeledSample,
    Sample,
    WordCounts,
)

LOGGER = logging.getLogger(__name__)

Continuation = Callable[[Any], None]


class EmptyDatasetError(ValueError):
    """Raised when evaluating against a dataset with no samples."""


class Bayesian:
    """Naive Bayes classifier over word-presence features.

    Every public operation follows the backend's declared capability: with a
    synchronous backend results are returned directly, with an asynchronous
    one the call returns a coroutine that must be awaited. An optional
    ``callback`` receives the result in both modes.
    """

    def __init__(
        self,
        options: ClassifierOptions | None = None,
        *,
        backend: Backend | None = None,
        backend_config: BackendConfig | None = None,
        extractor: Callable[[Any], FeatureSet] = extract_features,
        **overrides: Any,
    ) -> None:
        if backend is not None and backend_config is not None:
            raise ValueError("Pass either a backend instance or a backend config, not both.")
        base = options or ClassifierOptions()
        self._options = replace(base, **overrides) if overrides else base
        self.backend: Backend = backend if backend is not None else create_backend(backend_config)
        self._extract = extractor

    @property
    def options(self) -> ClassifierOptions:
        return self._options

    @property
    def is_async(self) -> bool:
        return bool(self.backend.is_async)

    def set_options(self, options: ClassifierOptions) -> None:
        self._options = options

    def set_thresholds(self, thresholds: Mapping[Category, float]) -> None:
        self._options = replace(self._options, thresholds=thresholds)

    def get_features(self, doc: Any) -> FeatureSet:
        return self._extract(doc)

    # Training

    def train(self, doc: Any, cat: Category, callback: Continuation | None = None) -> Any:
        """Tell the classifier that ``doc`` belongs to ``cat``."""

        return self._increment([Sample(doc=doc, cat=cat)], callback)

    def train_all(self, samples: Iterable[Any], callback: Continuation | None = None) -> Any:
        """Train on every sample as one batch.

        Samples may be :class:`Sample`, :class:`LabeledSample`, ``(doc, cat)``
        pairs or mappings with ``input``/``output`` (or ``doc``/``cat``) keys.
        """

        return self._increment([coerce_sample(item) for item in samples], callback)

    train_online = train
    train_batch = train_all

    def _increment(self, samples: list[Sample], callback: Continuation | None) -> Any:
        if self.backend.is_async:
            return self._increment_async(samples, callback)
        increments = self._aggregate(samples)
        result = self.backend.increment_counts(increments.categories, increments.words)
        return _deliver(result, callback)

    async def _increment_async(self, samples: list[Sample], callback: Continuation | None) -> Any:
        increments = self._aggregate(samples)
        result = await self.backend.increment_counts(increments.categories, increments.words)
        return _deliver(result, callback)

    def _aggregate(self, samples: list[Sample]) -> CountIncrements:
        increments = aggregate(samples, self._extract)
        LOGGER.debug(
            "Training batch of %d document(s) touching %d feature(s)",
            increments.documents,
            len(increments.words),
        )
        return increments

    # Classification

    def category_scores(self, doc: Any, callback: Continuation | None = None) -> Any:
        """Return the unnormalised score of every trained category for ``doc``."""

        if self.backend.is_async:
            return self._category_scores_async(doc, callback)
        features = self._extract(doc)
        categories = self.backend.get_categories()
        counts = self.backend.get_word_counts(features, categories)
        return _deliver(self._score(categories, features, counts), callback)

    async def _category_scores_async(self, doc: Any, callback: Continuation | None) -> Any:
        features = self._extract(doc)
        categories = await self.backend.get_categories()
        counts = await self.backend.get_word_counts(features, categories)
        return _deliver(self._score(categories, features, counts), callback)

    def classify(self, doc: Any, callback: Continuation | None = None) -> Any:
        """Return the most probable category of ``doc`` or the default category."""

        if self.backend.is_async:
            return self._classify_async(doc, callback)
        return _deliver(self.best_match(self.category_scores(doc)), callback)

    async def _classify_async(self, doc: Any, callback: Continuation | None) -> Any:
        scores = await self._category_scores_async(doc, None)
        return _deliver(self.best_match(scores), callback)

    def best_match(self, scores: Mapping[Category, float]) -> Category:
        if not scores:
            LOGGER.debug("No trained categories; returning %r", self._options.default)
        category = best_match(
            scores,
            default=self._options.default,
            thresholds=self._options.thresholds,
        )
        LOGGER.debug("Classified as %r from %d candidate(s)", category, len(scores))
        return category

    def _score(
        self, categories: CategoryCounts, features: FeatureSet, counts: WordCounts
    ) -> dict[Category, float]:
        return category_scores(
            categories,
            features,
            counts,
            weight=self._options.weight,
            assumed=self._options.assumed,
        )

    # Evaluation

    def test(self, samples: Iterable[Any]) -> Any:
        """Return the fraction of samples whose prediction differs from the gold label."""

        labeled = [coerce_labeled(item) for item in samples]
        if not labeled:
            raise EmptyDatasetError("Cannot compute an error rate over zero samples.")
        if self.backend.is_async:
            return self._test_async(labeled)
        errors = sum(1 for sample in labeled if self.classify(sample.input) != sample.output)
        return _error_rate(errors, len(labeled))

    async def _test_async(self, labeled: list[LabeledSample]) -> float:
        errors = 0
        for sample in labeled:
            if await self._classify_async(sample.input, None) != sample.output:
                errors += 1
        return _error_rate(errors, len(labeled))

    # Persistence

    def export_state(self, callback: Continuation | None = None) -> Any:
        if self.backend.is_async:
            return self._export_async(callback)
        return _deliver(self.backend.export_state(), callback)

    async def _export_async(self, callback: Continuation | None) -> Any:
        return _deliver(await self.backend.export_state(), callback)

    def import_state(self, state: Mapping[str, Any], callback: Continuation | None = None) -> Any:
        if self.backend.is_async:
            return self._import_async(state, callback)
        self.backend.import_state(state)
        return _deliver(self, callback)

    async def _import_async(self, state: Mapping[str, Any], callback: Continuation | None) -> Any:
        await self.backend.import_state(state)
        return _deliver(self, callback)

    def to_json(self) -> Any:
        """Serialise the backend snapshot to a JSON string."""

        if self.backend.is_async:
            return self._to_json_async()
        return json.dumps(self.backend.export_state(), sort_keys=True)

    async def _to_json_async(self) -> str:
        return json.dumps(await self.backend.export_state(), sort_keys=True)

    def from_json(self, text: str) -> Any:
        return self.import_state(json.loads(text))

    def close(self) -> Any:
        return self.backend.close()


def _deliver(value: Any, callback: Continuation | None) -> Any:
    if callback is not None:
        callback(value)
    return value


def _error_rate(errors: int, total: int) -> float:
    rate = errors / total
    LOGGER.debug("Misclassified %d of %d sample(s) (%.3f)", errors, total, rate)
    return rate


def coerce_sample(item: Any) -> Sample:
    if isinstance(item, Sample):
        return item
    if isinstance(item, LabeledSample):
        return Sample(doc=item.input, cat=item.output)
    if isinstance(item, Mapping):
        if "input" in item and "output" in item:
            return Sample(doc=item["input"], cat=item["output"])
        if "doc" in item and "cat" in item:
            return Sample(doc=item["doc"], cat=item["cat"])
        raise ValueError(f"Sample mapping needs input/output keys, got {sorted(item)!r}")
    if isinstance(item, tuple) and len(item) == 2:
        return Sample(doc=item[0], cat=item[1])
    raise TypeError(f"Unsupported sample type: {type(item).__name__}")


def coerce_labeled(item: Any) -> LabeledSample:
    if isinstance(item, LabeledSample):
        return item
    sample = coerce_sample(item)
    return LabeledSample(input=sample.doc, output=sample.cat)


__all__ = ["Bayesian", "Continuation", "EmptyDatasetError", "coerce_labeled", "coerce_sample"]
