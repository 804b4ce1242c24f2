"""Pick the winning category and veto it when the margin is too thin."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from .types import DEFAULT_CATEGORY, Category

LOGGER = logging.getLogger(__name__)


def best_match(
    scores: Mapping[Category, float],
    *,
    default: Category = DEFAULT_CATEGORY,
    thresholds: Mapping[Category, float] | None = None,
) -> Category:
    """Return the top-scoring category, or ``default`` when it is not confident.

    The winner must outscore every rival even after the rival's score is
    multiplied by the winner's threshold (1 when unset). Scores are compared
    raw, without normalisation. On equal scores the later category wins.
    """

    best_category: Category | None = None
    best_score = 0.0
    found = False
    for category, score in scores.items():
        if score > 0 and score >= best_score:
            best_category, best_score, found = category, score, True

    if not found:
        return default

    threshold = float((thresholds or {}).get(best_category, 1.0))
    for category, score in scores.items():
        if category == best_category:
            continue
        if score * threshold > best_score:
            LOGGER.debug(
                "Vetoed %r (%.3g): rival %r (%.3g) beats it at threshold %.3g",
                best_category,
                best_score,
                category,
                score,
                threshold,
            )
            return default
    return best_category


__all__ = ["best_match"]
