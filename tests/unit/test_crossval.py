from __future__ import annotations

import pytest

from bayesian.backends import AsyncMemoryBackend
from bayesian.classifier import Bayesian
from bayesian.crossval import cross_validate, evaluate_partition
from bayesian.types import LabeledSample


def _dataset() -> list[LabeledSample]:
    spam = ["cheap pills now", "cheap watches deal", "win cheap prize", "free pills deal"]
    ham = ["team meeting agenda", "project meeting notes", "agenda for team", "notes from project"]
    return [LabeledSample(input=text, output="spam") for text in spam] + [
        LabeledSample(input=text, output="ham") for text in ham
    ]


def test_evaluate_partition_reports_sizes_and_error() -> None:
    data = _dataset()

    fold = evaluate_partition(Bayesian, data, data)

    assert fold.error == 0.0
    assert fold.train_size == fold.test_size == len(data)
    assert fold.train_time >= 0.0
    assert fold.test_time >= 0.0


def test_cross_validate_averages_folds() -> None:
    result = cross_validate(Bayesian, _dataset(), k=4, random_state=7)

    assert len(result.folds) == 4
    assert result.train_size == 6
    assert result.test_size == 2
    assert 0.0 <= result.error <= 1.0
    assert result.error == pytest.approx(sum(fold.error for fold in result.folds) / 4)


def test_cross_validate_is_reproducible_with_seed() -> None:
    first = cross_validate(Bayesian, _dataset(), k=2, random_state=3)
    second = cross_validate(Bayesian, _dataset(), k=2, random_state=3)

    assert [fold.error for fold in first.folds] == [fold.error for fold in second.folds]


def test_each_fold_uses_a_fresh_classifier() -> None:
    built: list[Bayesian] = []

    def factory() -> Bayesian:
        classifier = Bayesian()
        built.append(classifier)
        return classifier

    cross_validate(factory, _dataset(), k=2, random_state=0)

    assert len(built) == 2
    assert [sum(c.backend.get_categories().values()) for c in built] == [4, 4]


@pytest.mark.parametrize("k", [0, 1, 9])
def test_fold_count_must_fit_dataset(k: int) -> None:
    with pytest.raises(ValueError, match="k must lie between"):
        cross_validate(Bayesian, _dataset(), k=k)


def test_async_backends_are_rejected() -> None:
    with pytest.raises(ValueError, match="synchronous backend"):
        cross_validate(lambda: Bayesian(backend=AsyncMemoryBackend()), _dataset(), k=2)
