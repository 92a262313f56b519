"""Exam simulation: preset quotas, question selection and timed sessions."""
import random
from datetime import datetime
from typing import Optional, Sequence

from loguru import logger

from secplus_tutor.catalogue import DOMAINS
from secplus_tutor.models import (
    Answer, ExamAnswer, ExamConfig, ExamQuestion, ExamSession, QuestionBank,
    QuestionHistoryEntry, is_pbq,
)
from secplus_tutor.results import calculate_exam_results
from secplus_tutor.scoring import score_answer
from secplus_tutor.selection import sample_weighted, shuffle

EXAM_PRESETS = {
    "quick": ExamConfig("quick", 45, 45, {1: 5, 2: 10, 3: 8, 4: 13, 5: 9}, 3),
    "standard": ExamConfig("standard", 65, 65, {1: 8, 2: 14, 3: 12, 4: 18, 5: 13}, 4),
    "full": ExamConfig("full", 90, 90, {1: 11, 2: 20, 3: 16, 4: 25, 5: 18}, 5),
}

# Share of each domain's choice questions by difficulty; medium takes the rest.
EASY_SHARE = 0.4
HARD_SHARE = 0.16

NEVER_SEEN_WEIGHT = 3
MISSED_WEIGHT = 2
ALWAYS_RIGHT_WEIGHT = 1


class ExamTimeUp(ValueError):
    """Raised when an answer arrives after the exam clock has run out."""


def get_preset(name: str) -> ExamConfig:
    try:
        return EXAM_PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown exam preset {name!r}; choose from {', '.join(EXAM_PRESETS)}") from None


def history_weight(entry: Optional[QuestionHistoryEntry]) -> int:
    """Favour novel questions, then ones the learner has missed before."""
    if entry is None or entry.times_seen == 0:
        return NEVER_SEEN_WEIGHT
    if entry.times_wrong > 0:
        return MISSED_WEIGHT
    return ALWAYS_RIGHT_WEIGHT


def pick_by_history(
    questions: Sequence[ExamQuestion],
    history: dict[str, QuestionHistoryEntry],
    count: int,
    rng: Optional[random.Random] = None,
) -> list[ExamQuestion]:
    if count <= 0 or not questions:
        return []
    weights = [history_weight(history.get(q.id)) for q in questions]
    return sample_weighted(questions, weights, count, rng)


def allocate_pbqs(domain_quotas: dict[int, int], pbq_total: int) -> dict[int, int]:
    """Spread the PBQ budget over domains, heaviest domain first."""
    total_weight = sum(domain_quotas.values())
    allocation = {d: 0 for d in domain_quotas}
    if total_weight == 0:
        return allocation
    weights = {d: domain_quotas[d] / total_weight for d in domain_quotas}
    remaining = pbq_total
    # sorted() is stable, so equal weights keep domain order.
    for d in sorted(domain_quotas, key=lambda d: weights[d], reverse=True):
        if remaining <= 0:
            break
        share = max(1, round(pbq_total * weights[d]))
        assign = min(share, remaining)
        allocation[d] = assign
        remaining -= assign
    return allocation


def split_by_difficulty(remaining: int) -> dict[int, int]:
    easy = round(remaining * EASY_SHARE)
    hard = round(remaining * HARD_SHARE)
    return {1: easy, 2: remaining - easy - hard, 3: hard}


def select_exam_questions(
    bank: QuestionBank,
    config: ExamConfig,
    history: dict[str, QuestionHistoryEntry],
    rng: Optional[random.Random] = None,
) -> list[ExamQuestion]:
    """Assemble an exam that follows the preset's domain and PBQ quotas.

    Pools that run dry are not topped up from elsewhere, so a thin bank
    yields a shorter exam.
    """
    quotas = dict(config.domain_quotas)
    pbqs = [q for q in bank.questions if is_pbq(q)]
    choices = [q for q in bank.questions if not is_pbq(q)]
    selected: list[ExamQuestion] = []

    pbq_allocation = allocate_pbqs(quotas, config.pbq_count)
    for d in DOMAINS:
        count = pbq_allocation.get(d, 0)
        if count == 0:
            continue
        domain_pbqs = [q for q in pbqs if q.domain == d]
        selected.extend(pick_by_history(domain_pbqs, history, count, rng))
        quotas[d] -= count

    for d in DOMAINS:
        remaining = quotas.get(d, 0)
        if remaining <= 0:
            continue
        pool = [q for q in choices if q.domain == d]
        for difficulty, count in split_by_difficulty(remaining).items():
            tier = [q for q in pool if q.difficulty == difficulty]
            selected.extend(pick_by_history(tier, history, count, rng))

    if len(selected) < config.total_questions:
        logger.warning(
            f"Exam '{config.preset}' under-filled: {len(selected)}/{config.total_questions} questions"
        )
    return shuffle(selected, rng)


# --- Timed sessions ---


def start_exam(
    bank: QuestionBank,
    preset: str,
    history: dict[str, QuestionHistoryEntry],
    now: datetime,
    rng: Optional[random.Random] = None,
) -> ExamSession:
    config = get_preset(preset)
    questions = select_exam_questions(bank, config, history, rng)
    logger.info(f"Started {preset} exam with {len(questions)} questions")
    return ExamSession(config=config, questions=questions, started_at=now)


def submit_answer(
    session: ExamSession,
    question: ExamQuestion,
    answer: Answer,
    bank: Optional[QuestionBank] = None,
    now: Optional[datetime] = None,
) -> ExamAnswer:
    """Score an answer and record it on the session.

    Answering the same question again replaces the earlier answer. When now
    is given and the clock has run out, the answer is rejected with
    ExamTimeUp and nothing is recorded.
    """
    if session.finished:
        raise ValueError("Exam session is already finished")
    if now is not None and is_time_up(session, now):
        raise ExamTimeUp(f"Answer to {question.id} arrived after the time limit")
    rules = bank.meta.scoring if bank is not None else None
    result = score_answer(question, answer, rules)
    exam_answer = ExamAnswer(
        question_id=question.id,
        type=question.type,
        answer=sorted(answer) if isinstance(answer, (set, frozenset)) else answer,
        points_earned=result.points_earned,
        points_possible=result.points_possible,
        correct=result.correct,
        domain=question.domain,
    )
    session.answers = [a for a in session.answers if a.question_id != question.id]
    session.answers.append(exam_answer)
    return exam_answer


def time_remaining(session: ExamSession, now: datetime) -> int:
    """Whole seconds left on the exam clock, never negative."""
    limit = session.config.time_limit_minutes * 60
    elapsed = (now - session.started_at).total_seconds()
    return max(0, int(limit - elapsed))


def is_time_up(session: ExamSession, now: datetime) -> bool:
    return time_remaining(session, now) == 0


def finish_exam(session: ExamSession, now: datetime) -> ExamSession:
    """Finalize the session with whatever answers have been recorded."""
    if session.finished:
        return session
    limit = session.config.time_limit_minutes * 60
    elapsed = round((now - session.started_at).total_seconds())
    session.time_used_seconds = min(max(0, elapsed), limit)
    session.completed_at = now
    session.result = calculate_exam_results(session.answers)
    logger.info(
        f"Finished {session.config.preset} exam: {len(session.answers)}/{len(session.questions)} answered, "
        f"{session.result.percentage:.1f}%"
    )
    return session
