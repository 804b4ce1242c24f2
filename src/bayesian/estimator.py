"""Smoothed per-word likelihoods and unnormalised per-category scores."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .types import DEFAULT_ASSUMED, DEFAULT_WEIGHT, Category, Feature


def word_probability(
    category: Category,
    category_counts: Mapping[Category, int],
    feature_counts: Mapping[Category, int],
    *,
    weight: float = DEFAULT_WEIGHT,
    assumed: float = DEFAULT_ASSUMED,
) -> float:
    """Return P(feature | category) blended with the ``assumed`` prior.

    ``feature_counts`` maps each category to the number of its training
    documents containing the feature. The empirical ratio is weighted by how
    often the feature was seen overall, so rare features stay near ``assumed``.
    """

    documents = category_counts.get(category, 0)
    # A feature cannot appear in more documents than its category holds.
    raw = min(feature_counts.get(category, 0), documents) / documents if documents > 0 else 0.0
    total = sum(feature_counts.get(name, 0) for name in category_counts)
    return (weight * assumed + total * raw) / (weight + total)


def category_scores(
    category_counts: Mapping[Category, int],
    features: Iterable[Feature],
    word_counts: Mapping[Feature, Mapping[Category, int]],
    *,
    weight: float = DEFAULT_WEIGHT,
    assumed: float = DEFAULT_ASSUMED,
) -> dict[Category, float]:
    """Return prior * product of word probabilities for every known category."""

    features = tuple(features)
    total_documents = sum(category_counts.values())
    scores: dict[Category, float] = {}
    for category, documents in category_counts.items():
        if total_documents <= 0:
            scores[category] = 0.0
            continue
        score = (documents or 0) / total_documents
        for feature in features:
            score *= word_probability(
                category,
                category_counts,
                word_counts.get(feature, {}),
                weight=weight,
                assumed=assumed,
            )
        scores[category] = score
    return scores


__all__ = ["category_scores", "word_probability"]
