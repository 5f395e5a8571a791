import random

import pytest

from vocage import scheduler


def test_score_without_history_is_one() -> None:
    assert scheduler.score(0, 0) == 1.0


@pytest.mark.parametrize("correct", [0, 1, 5, 20])
def test_score_grows_with_incorrect_answers(correct: int) -> None:
    scores = [scheduler.score(correct, incorrect) for incorrect in range(10)]
    assert all(s > 0 for s in scores)
    assert scores == sorted(scores)


def test_score_examples() -> None:
    assert scheduler.score(0, 10) == 11.0
    assert scheduler.score(10, 0) == pytest.approx(1 / 11)


def test_is_due_boundaries() -> None:
    now = 1_000_000
    assert scheduler.is_due(None, 24, now)
    assert scheduler.is_due(now, 0, now)
    assert scheduler.is_due(now - 24 * 3600 - 1, 24, now)
    assert not scheduler.is_due(now - 24 * 3600, 24, now)
    assert not scheduler.is_due(now - 24 * 3600 + 1, 24, now)


def test_promotion_and_demotion_targets() -> None:
    assert scheduler.promotion_target(0, 5) == (1, True)
    assert scheduler.promotion_target(4, 5) == (4, False)
    assert scheduler.demotion_target(3) == (2, True)
    assert scheduler.demotion_target(0) == (0, False)
    assert scheduler.demotion_target(3, returntofirst=True) == (0, True)
    assert scheduler.demotion_target(0, returntofirst=True) == (0, False)


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


def test_weighted_choice_walks_cumulative_weights() -> None:
    items = ["a", "b", "c"]
    weights = [1.0, 2.0, 1.0]
    assert scheduler.weighted_choice(items, weights, FixedRandom(0.0)) == "a"
    assert scheduler.weighted_choice(items, weights, FixedRandom(0.25)) == "a"  # choice == 1.0, tie goes first
    assert scheduler.weighted_choice(items, weights, FixedRandom(0.5)) == "b"
    assert scheduler.weighted_choice(items, weights, FixedRandom(0.99)) == "c"
    assert scheduler.weighted_choice([], [], FixedRandom(0.5)) is None
