"""K-fold cross-validation of classifier configurations."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from sklearn.model_selection import KFold

from .classifier import Bayesian, coerce_labeled
from .types import LabeledSample

LOGGER = logging.getLogger(__name__)
DEFAULT_FOLDS = 3


@dataclass(frozen=True)
class FoldResult:
    """Outcome of training and testing on a single partition."""

    error: float
    train_time: float
    test_time: float
    train_size: int
    test_size: int


@dataclass(frozen=True)
class CrossValidationResult:
    """Averages over all folds."""

    error: float
    train_time: float
    test_time: float
    train_size: float
    test_size: float
    folds: tuple[FoldResult, ...]


def evaluate_partition(
    factory: Callable[[], Bayesian],
    train_set: Sequence[LabeledSample],
    test_set: Sequence[LabeledSample],
) -> FoldResult:
    """Train a fresh classifier on ``train_set`` and measure it on ``test_set``."""

    classifier = factory()
    if classifier.is_async:
        raise ValueError("Cross-validation requires a synchronous backend.")
    begin_train = time.perf_counter()
    classifier.train_all(train_set)
    begin_test = time.perf_counter()
    error = classifier.test(test_set)
    end_test = time.perf_counter()
    return FoldResult(
        error=float(error),
        train_time=begin_test - begin_train,
        test_time=end_test - begin_test,
        train_size=len(train_set),
        test_size=len(test_set),
    )


def cross_validate(
    factory: Callable[[], Bayesian],
    data: Sequence[Any],
    k: int = DEFAULT_FOLDS,
    *,
    random_state: int | None = None,
) -> CrossValidationResult:
    """Shuffle ``data`` and average error and timings over ``k`` folds."""

    samples = [coerce_labeled(item) for item in data]
    if k < 2 or k > len(samples):
        raise ValueError(
            f"k must lie between 2 and the number of samples ({len(samples)}), got {k}"
        )

    splitter = KFold(n_splits=k, shuffle=True, random_state=random_state)
    folds: list[FoldResult] = []
    for index, (train_idx, test_idx) in enumerate(splitter.split(np.arange(len(samples)))):
        train_set = [samples[i] for i in train_idx]
        test_set = [samples[i] for i in test_idx]
        fold = evaluate_partition(factory, train_set, test_set)
        LOGGER.debug("Fold %d/%d: error %.3f", index + 1, k, fold.error)
        folds.append(fold)

    result = CrossValidationResult(
        error=float(np.mean([fold.error for fold in folds])),
        train_time=float(np.mean([fold.train_time for fold in folds])),
        test_time=float(np.mean([fold.test_time for fold in folds])),
        train_size=float(np.mean([fold.train_size for fold in folds])),
        test_size=float(np.mean([fold.test_size for fold in folds])),
        folds=tuple(folds),
    )
    LOGGER.info(
        "Cross-validated %d sample(s) over %d folds: error %.3f", len(samples), k, result.error
    )
    return result


__all__ = ["CrossValidationResult", "FoldResult", "cross_validate", "evaluate_partition"]
