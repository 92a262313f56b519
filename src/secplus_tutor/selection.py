"""Acronym selection for training and test sessions."""
import math
import random
from typing import Optional, Sequence, TypeVar

from loguru import logger

from secplus_tutor.models import AcronymEntry, AcronymProgress, Category, MasteryLevel

T = TypeVar("T")

TRAINING_MODES = ("random", "reinforcement")
UNSEEN_HARD_WEIGHT = 5


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> list[T]:
    """Return a uniformly shuffled copy (Fisher-Yates)."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def filter_acronyms(
    acronyms: Sequence[AcronymEntry],
    domain: Optional[int] = None,
    category: Optional[Category] = None,
) -> list[AcronymEntry]:
    return [
        a for a in acronyms
        if (domain is None or a.domain == domain)
        and (category is None or a.category == category)
    ]


def select_random(
    acronyms: Sequence[AcronymEntry], count: int, rng: Optional[random.Random] = None
) -> list[AcronymEntry]:
    return shuffle(acronyms, rng)[:count]


def select_reinforcement(
    acronyms: Sequence[AcronymEntry],
    progress: dict[str, AcronymProgress],
    count: int = 20,
    rng: Optional[random.Random] = None,
) -> list[AcronymEntry]:
    """Pick unseen items first, then weak ones, then items still being learned."""
    unseen, weak, learning = [], [], []
    for a in acronyms:
        p = progress.get(a.id)
        if p is None or p.times_seen_in_training == 0:
            unseen.append(a)
        elif p.weakness_score >= 0.5:
            weak.append(a)
        elif p.mastery_level == MasteryLevel.LEARNING:
            learning.append(a)

    pool = shuffle(unseen, rng) + shuffle(weak, rng) + shuffle(learning, rng)
    seen_ids = set()
    result = []
    for a in pool:
        if len(result) >= count:
            break
        if a.id not in seen_ids:
            seen_ids.add(a.id)
            result.append(a)
    logger.debug(
        f"Reinforcement buckets: {len(unseen)} unseen, {len(weak)} weak, "
        f"{len(learning)} learning -> {len(result)} selected"
    )
    return result


def pad_with_random(
    selected: Sequence[AcronymEntry],
    acronyms: Sequence[AcronymEntry],
    count: int,
    rng: Optional[random.Random] = None,
) -> list[AcronymEntry]:
    """Top up a selection with random items not already in it."""
    result = list(selected)
    if len(result) >= count:
        return result
    chosen = {a.id for a in result}
    extras = [a for a in acronyms if a.id not in chosen]
    return result + shuffle(extras, rng)[: count - len(result)]


def build_training_deck(
    mode: str,
    acronyms: Sequence[AcronymEntry],
    progress: dict[str, AcronymProgress],
    count: int = 20,
    rng: Optional[random.Random] = None,
) -> list[AcronymEntry]:
    if mode == "random":
        return select_random(acronyms, count, rng)
    if mode == "reinforcement":
        deck = select_reinforcement(acronyms, progress, count, rng)
        return pad_with_random(deck, acronyms, count, rng)
    raise ValueError(f"Unknown training mode: {mode!r}")


def weighted_index(weights: Sequence[float], rng: Optional[random.Random] = None) -> int:
    """Pick an index with probability proportional to its weight."""
    rng = rng or random.Random()
    total = sum(weights)
    r = rng.random() * total
    for i, w in enumerate(weights):
        r -= w
        if r < 0:
            return i
    # Float rounding can leave r at 0; fall back to the last positive weight.
    for i in range(len(weights) - 1, -1, -1):
        if weights[i] > 0:
            return i
    return len(weights) - 1


def sample_weighted(
    items: Sequence[T],
    weights: Sequence[float],
    count: int,
    rng: Optional[random.Random] = None,
) -> list[T]:
    """Weighted random sampling without replacement.

    Never returns duplicates and never more than len(items).
    """
    if len(items) != len(weights):
        raise ValueError("items and weights must be the same length")
    pool = list(items)
    pool_weights = list(weights)
    picked = []
    while len(picked) < count and pool:
        idx = weighted_index(pool_weights, rng)
        picked.append(pool.pop(idx))
        pool_weights.pop(idx)
    return picked


def hard_mode_weight(progress: Optional[AcronymProgress]) -> int:
    if progress is None:
        return UNSEEN_HARD_WEIGHT
    # Halves round up: 0.25 weighs 3.
    return max(1, math.floor(progress.weakness_score * 10 + 0.5))


def select_hard_mode(
    acronyms: Sequence[AcronymEntry],
    progress: dict[str, AcronymProgress],
    count: int = 35,
    rng: Optional[random.Random] = None,
) -> list[AcronymEntry]:
    """Weakness-weighted sample that keeps confusable pairs together."""
    by_id = {a.id: a for a in acronyms}
    pool = list(acronyms)
    weights = [hard_mode_weight(progress.get(a.id)) for a in pool]
    selected = []
    selected_ids = set()

    while len(selected) < count and pool:
        idx = weighted_index(weights, rng)
        pick = pool.pop(idx)
        weights.pop(idx)
        if pick.id in selected_ids:
            continue
        selected.append(pick)
        selected_ids.add(pick.id)

        for confused_id in pick.confused_with:
            if len(selected) >= count:
                break
            partner = by_id.get(confused_id)
            if partner is None or confused_id in selected_ids:
                continue
            selected.append(partner)
            selected_ids.add(confused_id)

    return selected[:count]
