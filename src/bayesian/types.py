"""Core immutable data structures used throughout the classifier."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

DEFAULT_CATEGORY = "unclassified"
DEFAULT_WEIGHT = 1.0
DEFAULT_ASSUMED = 0.5

Category: TypeAlias = Hashable
Feature: TypeAlias = Hashable
FeatureSet: TypeAlias = tuple[Feature, ...]
CategoryCounts: TypeAlias = dict[Category, int]
WordCounts: TypeAlias = dict[Feature, dict[Category, int]]
Thresholds: TypeAlias = Mapping[Category, float]


@dataclass(frozen=True)
class Sample:
    """A training document paired with its category."""

    doc: Any
    cat: Category


@dataclass(frozen=True)
class LabeledSample:
    """Evaluation record: a document and its gold category."""

    input: Any
    output: Category


@dataclass(frozen=True)
class ClassifierOptions:
    """Model configuration held by the classifier facade."""

    default: Category = DEFAULT_CATEGORY
    weight: float = DEFAULT_WEIGHT
    assumed: float = DEFAULT_ASSUMED
    thresholds: Mapping[Category, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"weight must be positive, got {self.weight}")
        if not 0.0 <= self.assumed <= 1.0:
            raise ValueError(f"assumed must lie within [0, 1], got {self.assumed}")
        for category, threshold in self.thresholds.items():
            if threshold <= 0:
                raise ValueError(
                    f"threshold for category {category!r} must be positive, got {threshold}"
                )
        # Frozen dataclass: store a private copy of the thresholds.
        object.__setattr__(self, "thresholds", dict(self.thresholds))

    def threshold_for(self, category: Category) -> float:
        return float(self.thresholds.get(category, 1.0))


__all__ = [
    "Category",
    "CategoryCounts",
    "ClassifierOptions",
    "DEFAULT_ASSUMED",
    "DEFAULT_CATEGORY",
    "DEFAULT_WEIGHT",
    "Feature",
    "FeatureSet",
    "LabeledSample",
    "Sample",
    "Thresholds",
    "WordCounts",
]
