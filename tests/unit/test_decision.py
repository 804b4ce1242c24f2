from __future__ import annotations

import pytest

from bayesian.decision import best_match


def test_highest_score_wins() -> None:
    assert best_match({"spam": 0.2, "ham": 0.1}) == "spam"


def test_empty_scores_return_default() -> None:
    assert best_match({}, default="none") == "none"


def test_all_zero_scores_return_default() -> None:
    assert best_match({"spam": 0.0, "ham": 0.0}) == "unclassified"


def test_tie_goes_to_the_later_category() -> None:
    assert best_match({"a": 0.5, "b": 0.5}) == "b"
    assert best_match({"a": 0.5, "b": 0.5, "c": 0.1}) == "b"
    assert best_match({"b": 0.5, "a": 0.5}) == "a"


def test_tie_is_vetoed_only_when_threshold_exceeds_one() -> None:
    scores = {"a": 0.5, "b": 0.5}

    assert best_match(scores, thresholds={"b": 1.0}) == "b"
    assert best_match(scores, thresholds={"b": 1.01}) == "unclassified"


def test_threshold_demands_margin_over_every_rival() -> None:
    scores = {"spam": 0.3, "ham": 0.1, "news": 0.05}

    assert best_match(scores, thresholds={"spam": 2.9}) == "spam"
    assert best_match(scores, thresholds={"spam": 3.1}, default="inbox") == "inbox"


def test_threshold_below_one_makes_veto_harder() -> None:
    assert best_match({"a": 0.3, "b": 0.29}, thresholds={"a": 0.5}) == "a"


def test_threshold_of_rival_category_is_ignored() -> None:
    assert best_match({"a": 0.3, "b": 0.2}, thresholds={"b": 100}) == "a"


@pytest.mark.parametrize(
    "scores",
    [
        {"a": 0.4, "b": 0.3, "c": 0.01},
        {"a": 0.9, "b": 0.05},
        {"x": 0.2, "y": 0.19, "z": 0.18},
    ],
)
def test_raising_winner_threshold_never_reduces_vetoes(scores: dict[str, float]) -> None:
    winner = best_match(scores)
    vetoed_before = False
    for threshold in [0.5, 1.0, 1.1, 1.5, 2.0, 5.0, 50.0]:
        result = best_match(scores, thresholds={winner: threshold})
        vetoed = result == "unclassified"
        assert vetoed or not vetoed_before
        assert result in (winner, "unclassified")
        vetoed_before = vetoed


def test_default_can_be_any_hashable() -> None:
    assert best_match({}, default=None) is None
