"""Pick plausible wrong options for acronym questions."""
import random
import re
from typing import Optional, Sequence

from secplus_tutor.models import AcronymEntry
from secplus_tutor.selection import shuffle

SIMILARITY_MODES = ("acronym", "full_name")

CONFUSED_BONUS = 20
SAME_CATEGORY_BONUS = 5
SAME_DOMAIN_BONUS = 2
PREFIX_CHAR_POINTS = 3
SHARED_CHAR_POINTS = 1
SHARED_WORD_POINTS = 4
POOL_FACTOR = 4

_WORD_SPLIT = re.compile(r"[\s\-/,]+")


def _common_prefix_length(a: str, b: str) -> int:
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n


def _words(text: str) -> set[str]:
    return {w for w in _WORD_SPLIT.split(text.lower()) if len(w) > 2}


def similarity_score(target: AcronymEntry, candidate: AcronymEntry, mode: str = "acronym") -> int:
    """Score how easily candidate could be mistaken for target."""
    if mode not in SIMILARITY_MODES:
        raise ValueError(f"Unknown similarity mode: {mode!r}")
    score = 0
    if candidate.id in target.confused_with or target.id in candidate.confused_with:
        score += CONFUSED_BONUS
    if candidate.category == target.category:
        score += SAME_CATEGORY_BONUS
    if candidate.domain == target.domain:
        score += SAME_DOMAIN_BONUS

    if mode == "acronym":
        t, c = target.id.upper(), candidate.id.upper()
        score += PREFIX_CHAR_POINTS * _common_prefix_length(t, c)
        score += SHARED_CHAR_POINTS * len(set(t) & set(c))
    else:
        score += SHARED_WORD_POINTS * len(_words(target.full_name) & _words(candidate.full_name))
    return score


def pick_distractors(
    target: AcronymEntry,
    acronyms: Sequence[AcronymEntry],
    count: int = 3,
    mode: str = "acronym",
    rng: Optional[random.Random] = None,
) -> list[AcronymEntry]:
    """Return count distinct wrong options, favouring similar items.

    The top count*4 candidates are pooled and shuffled so the same item does
    not always get the same distractors.
    """
    candidates = []
    seen = {target.id}
    for a in acronyms:
        if a.id in seen:
            continue
        seen.add(a.id)
        candidates.append(a)
    ranked = sorted(candidates, key=lambda a: similarity_score(target, a, mode), reverse=True)
    pool = ranked[: count * POOL_FACTOR]
    return shuffle(pool, rng)[:count]
