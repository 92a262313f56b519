"""Build acronym test questions of the six supported kinds."""
import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Sequence, Union

from secplus_tutor.distractors import pick_distractors
from secplus_tutor.models import AcronymEntry
from secplus_tutor.selection import shuffle

TEST_MODES = ("normal", "hard")


class QuestionKind(IntEnum):
    FULL_NAME = 1     # acronym shown, pick the meaning
    ACRONYM = 2       # meaning shown, pick the acronym
    TRUE_FALSE = 3
    MATCH_PAIRS = 4
    FILL_BLANK = 5
    SCENARIO = 6


K = QuestionKind

# Normal tests lean on recognition; hard tests lean on recall and matching.
KIND_MIX = {
    "normal": (K.FULL_NAME,) * 3 + (K.ACRONYM,) * 3 + (K.TRUE_FALSE,) * 2
    + (K.MATCH_PAIRS,) * 2 + (K.FILL_BLANK, K.SCENARIO),
    "hard": (K.FULL_NAME, K.ACRONYM, K.TRUE_FALSE) + (K.MATCH_PAIRS,) * 3
    + (K.FILL_BLANK,) * 3 + (K.SCENARIO,) * 3,
}


@dataclass
class DrillQuestion:
    kind: QuestionKind
    acronym: AcronymEntry
    correct_answer: str
    options: list[str] = field(default_factory=list)
    pair_items: list[tuple[str, str]] = field(default_factory=list)
    scenario_text: str = ""


def pick_question_kind(mode: str, rng: Optional[random.Random] = None) -> QuestionKind:
    if mode not in KIND_MIX:
        raise ValueError(f"Unknown test mode: {mode!r}")
    rng = rng or random.Random()
    mix = KIND_MIX[mode]
    return mix[rng.randrange(len(mix))]


def generate_question(
    acronym: AcronymEntry,
    acronyms: Sequence[AcronymEntry],
    kind: QuestionKind,
    rng: Optional[random.Random] = None,
    distractor_count: int = 3,
) -> DrillQuestion:
    rng = rng or random.Random()

    if kind == K.FULL_NAME:
        others = pick_distractors(acronym, acronyms, distractor_count, "full_name", rng)
        options = shuffle([acronym.full_name] + [o.full_name for o in others], rng)
        return DrillQuestion(kind, acronym, acronym.full_name, options=options)

    if kind == K.ACRONYM:
        others = pick_distractors(acronym, acronyms, distractor_count, "acronym", rng)
        options = shuffle([acronym.id] + [o.id for o in others], rng)
        return DrillQuestion(kind, acronym, acronym.id, options=options)

    if kind == K.TRUE_FALSE:
        wrong = pick_distractors(acronym, acronyms, 1, "full_name", rng)
        if not wrong or rng.random() > 0.5:
            return DrillQuestion(kind, acronym, "true", options=[f"{acronym.id} = {acronym.full_name}"])
        return DrillQuestion(kind, acronym, "false", options=[f"{acronym.id} = {wrong[0].full_name}"])

    if kind == K.MATCH_PAIRS:
        others = pick_distractors(acronym, acronyms, distractor_count, "full_name", rng)
        pairs = shuffle([(a.id, a.full_name) for a in [acronym] + others], rng)
        return DrillQuestion(kind, acronym, acronym.full_name, pair_items=pairs)

    if kind == K.FILL_BLANK:
        return DrillQuestion(kind, acronym, acronym.id)

    if kind == K.SCENARIO:
        others = pick_distractors(acronym, acronyms, distractor_count, "acronym", rng)
        options = shuffle([acronym.id] + [o.id for o in others], rng)
        return DrillQuestion(kind, acronym, acronym.id, options=options, scenario_text=acronym.example)

    raise ValueError(f"Unknown question kind: {kind!r}")


def check_answer(question: DrillQuestion, response: Union[str, dict, None]) -> bool:
    """Decide whether a learner response to a test question is correct."""
    if response is None:
        return False
    if question.kind == K.FILL_BLANK:
        return isinstance(response, str) and response.strip().upper() == question.correct_answer.upper()
    if question.kind == K.MATCH_PAIRS:
        if not isinstance(response, dict):
            return False
        return all(response.get(left) == right for left, right in question.pair_items)
    return response == question.correct_answer


def build_test_questions(
    pool: Sequence[AcronymEntry],
    count: int,
    mode: str,
    acronyms: Sequence[AcronymEntry],
    rng: Optional[random.Random] = None,
    distractor_count: int = 3,
) -> list[DrillQuestion]:
    rng = rng or random.Random()
    questions = []
    for entry in shuffle(pool, rng)[:count]:
        kind = pick_question_kind(mode, rng)
        # Fill-in-the-blank is only fair for the easiest acronyms.
        if kind == K.FILL_BLANK and entry.difficulty != 1:
            kind = K.FULL_NAME
        questions.append(generate_question(entry, acronyms, kind, rng, distractor_count))
    return questions
