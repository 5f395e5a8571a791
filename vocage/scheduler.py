import random
from typing import Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def score(correct: int, incorrect: int) -> float:
    """
    Selection weight of a card given its review history.

    (incorrect + 1) / (correct + 1): grows with the number of failed recalls
    relative to successful ones and is always strictly positive, so a card
    without any history still has a chance of being picked.
    """
    return (incorrect + 1) / (correct + 1)


def is_due(last_visit: Optional[int], interval_hours: int, now: int) -> bool:
    """A card is due when its deck has no interval, it was never visited,
    or more than ``interval_hours`` have passed since the last visit."""
    if not interval_hours or last_visit is None:
        return True
    return now - last_visit > interval_hours * 3600


def promotion_target(deck: int, deck_count: int) -> Tuple[int, bool]:
    """
    Leitner promotion: one deck up.

    Returns (target_deck, moved); on the last deck the card stays put.
    """
    if deck + 1 < deck_count:
        return deck + 1, True
    return deck, False


def demotion_target(deck: int, returntofirst: bool = False) -> Tuple[int, bool]:
    """
    Leitner demotion: one deck down, or straight back to deck 0 when
    ``returntofirst`` is set. On deck 0 the card stays put.
    """
    if deck == 0:
        return 0, False
    if returntofirst:
        return 0, True
    return deck - 1, True


def weighted_choice(items: Sequence[T], weights: Sequence[float],
                    rng: Optional[random.Random] = None) -> Optional[T]:
    """
    Pick one item with probability proportional to its weight.

    Draws ``choice`` from [0, total) and walks the items in order, returning
    the first one whose cumulative weight reaches ``choice``. Ties resolve to
    the earliest item.
    """
    if not items:
        return None
    rng = rng or random
    total = sum(weights)
    choice = rng.random() * total
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += weight
        if cumulative >= choice:
            return item
    # float rounding can leave choice marginally above the final sum
    return items[-1]
