"""Turn labelled samples into one batch of count increments."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .features import extract_features
from .types import Category, CategoryCounts, FeatureSet, Sample, WordCounts


@dataclass
class CountIncrements:
    """Pending category and per-word increments for a single backend write."""

    categories: CategoryCounts = field(default_factory=dict)
    words: WordCounts = field(default_factory=dict)

    @property
    def documents(self) -> int:
        return sum(self.categories.values())

    def add(self, features: FeatureSet, category: Category) -> None:
        self.categories[category] = self.categories.get(category, 0) + 1
        for feature in dict.fromkeys(features):
            per_category = self.words.setdefault(feature, {})
            per_category[category] = per_category.get(category, 0) + 1


def aggregate(
    samples: Iterable[Sample],
    extractor: Callable[[Any], FeatureSet] = extract_features,
) -> CountIncrements:
    """Accumulate increments for every sample before anything touches storage."""

    increments = CountIncrements()
    for sample in samples:
        increments.add(extractor(sample.doc), sample.cat)
    return increments


__all__ = ["CountIncrements", "aggregate"]
