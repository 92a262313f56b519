"""Session-level aggregation of scored answers."""
from collections import Counter
from datetime import datetime
from typing import Iterable, Sequence

from secplus_tutor.models import (
    AcronymEntry, DomainScore, ExamAnswer, ExamResult, StudySession, Tally,
)

# Approximates a 750/900 scaled passing score.
PASS_THRESHOLD = 83.3


def _percentage(earned: float, possible: float) -> float:
    return (earned / possible) * 100 if possible > 0 else 0.0


def calculate_exam_results(answers: Iterable[ExamAnswer]) -> ExamResult:
    total_earned = 0.0
    total_possible = 0.0
    domains: dict[int, DomainScore] = {}
    for a in answers:
        total_earned += a.points_earned
        total_possible += a.points_possible
        ds = domains.setdefault(a.domain, DomainScore(domain=a.domain))
        ds.earned += a.points_earned
        ds.possible += a.points_possible

    for ds in domains.values():
        ds.percentage = _percentage(ds.earned, ds.possible)

    percentage = _percentage(total_earned, total_possible)
    return ExamResult(
        total_points_earned=total_earned,
        total_points_possible=total_possible,
        percentage=percentage,
        passed=percentage >= PASS_THRESHOLD,
        domain_breakdown=dict(sorted(domains.items())),
    )


class DrillTally:
    """Running totals for an acronym test while it is in progress."""

    def __init__(self):
        self.correct = 0
        self.wrong = 0
        self.missed_ids: list[str] = []
        self.domain_breakdown: dict[int, Tally] = {}
        self.category_breakdown: dict[str, Tally] = {}

    @property
    def answered(self) -> int:
        return self.correct + self.wrong

    def record(self, acronym: AcronymEntry, correct: bool) -> None:
        if correct:
            self.correct += 1
        else:
            self.wrong += 1
            self.missed_ids.append(acronym.id)
        for key, table in (
            (acronym.domain, self.domain_breakdown),
            (acronym.category.value, self.category_breakdown),
        ):
            tally = table.setdefault(key, Tally())
            tally.total += 1
            tally.correct += 1 if correct else 0

    def to_session(
        self, mode: str, total_questions: int, started_at: datetime, completed_at: datetime
    ) -> StudySession:
        return StudySession(
            mode=mode,
            started_at=started_at,
            completed_at=completed_at,
            total_questions=total_questions,
            correct_answers=self.correct,
            score=_percentage(self.correct, total_questions),
            duration_seconds=round((completed_at - started_at).total_seconds()),
            acronyms_missed=list(self.missed_ids),
            domain_breakdown=dict(sorted(self.domain_breakdown.items())),
            category_breakdown=dict(self.category_breakdown),
        )


def summarize_training(
    mode: str,
    deck: Sequence[AcronymEntry],
    swipes: dict[str, str],
    started_at: datetime,
    completed_at: datetime,
) -> StudySession:
    """Training decks score the share of cards swiped as known (right)."""
    counts = Counter(swipes.get(a.id) for a in deck)
    confident = counts["right"]
    return StudySession(
        mode=f"training-{mode}",
        started_at=started_at,
        completed_at=completed_at,
        total_questions=len(deck),
        correct_answers=confident,
        score=_percentage(confident, len(deck)),
        duration_seconds=round((completed_at - started_at).total_seconds()),
        acronyms_missed=[a.id for a in deck if swipes.get(a.id) == "left"],
    )
