"""Partial-credit scoring for exam questions."""
from typing import Optional

from secplus_tutor.models import (
    Answer, ExamQuestion, MultiChoiceQuestion, OrderQuestion, QuestionBank,
    ScoreResult, ScoringRules, SingleChoiceQuestion, ZoneQuestion,
)


def score_single_choice(q: SingleChoiceQuestion, answer: Answer, rules: ScoringRules) -> ScoreResult:
    correct = isinstance(answer, str) and answer == q.correct_answer
    return ScoreResult(rules.mcq_points if correct else 0.0, rules.mcq_points, correct)


def score_multi_choice(q: MultiChoiceQuestion, answer: Answer, rules: ScoringRules) -> ScoreResult:
    """One point per correct pick, capped at the number of correct answers."""
    possible = float(len(q.correct_answers))
    if not isinstance(answer, (list, tuple, set, frozenset)):
        return ScoreResult(0.0, possible, False)
    if not all(isinstance(a, str) for a in answer):
        return ScoreResult(0.0, possible, False)
    submitted = set(answer)
    earned = min(len(submitted & q.correct_answers), len(q.correct_answers))
    return ScoreResult(float(earned), possible, submitted == q.correct_answers)


def score_order(q: OrderQuestion, answer: Answer, rules: ScoringRules) -> ScoreResult:
    """Position-wise credit: each slot in the right place earns an equal share."""
    possible = rules.pbq_order_points
    if not isinstance(answer, (list, tuple)) or not q.correct_order:
        return ScoreResult(0.0, possible, False)
    per_position = possible / len(q.correct_order)
    matches = sum(
        1 for i, item_id in enumerate(q.correct_order)
        if i < len(answer) and answer[i] == item_id
    )
    return ScoreResult(matches * per_position, possible, matches == len(q.correct_order))


def score_zones(q: ZoneQuestion, answer: Answer, rules: ScoringRules) -> ScoreResult:
    possible = rules.pbq_drag_points
    if not isinstance(answer, dict) or not q.correct_mapping:
        return ScoreResult(0.0, possible, False)
    per_item = possible / len(q.correct_mapping)
    matches = sum(1 for item_id, zone_id in q.correct_mapping.items() if answer.get(item_id) == zone_id)
    return ScoreResult(matches * per_item, possible, matches == len(q.correct_mapping))


def score_answer(
    question: ExamQuestion, answer: Answer, rules: Optional[ScoringRules] = None
) -> ScoreResult:
    """Score a submitted answer. Never raises for a malformed answer shape."""
    rules = rules or ScoringRules()
    if isinstance(question, SingleChoiceQuestion):
        return score_single_choice(question, answer, rules)
    if isinstance(question, MultiChoiceQuestion):
        return score_multi_choice(question, answer, rules)
    if isinstance(question, OrderQuestion):
        return score_order(question, answer, rules)
    if isinstance(question, ZoneQuestion):
        return score_zones(question, answer, rules)
    raise TypeError(f"Unsupported question type: {type(question).__name__}")


def score_answer_by_id(bank: QuestionBank, question_id: str, answer: Answer) -> ScoreResult:
    """Look up a question and score it; unknown ids count as a miss worth nothing."""
    question = bank.get(question_id)
    if question is None:
        return ScoreResult(0.0, 0.0, False)
    return score_answer(question, answer, bank.meta.scoring)
