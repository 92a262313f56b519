"""Weak area identification and missed-question digests."""
from typing import Iterable, Sequence

from secplus_tutor.models import DOMAIN_NAMES, AcronymEntry, AcronymProgress, ExamAnswer, QuestionBank


def get_weak_acronyms(
    acronyms: Sequence[AcronymEntry],
    progress: dict[str, AcronymProgress],
    threshold: float = 0.5,
    limit: int = 10,
) -> list[dict]:
    """Tested acronyms whose weakness score reaches threshold (worst first)."""
    weak = []
    for a in acronyms:
        p = progress.get(a.id)
        if p is None or p.times_tested == 0 or p.weakness_score < threshold:
            continue
        weak.append({
            "acronym_id": a.id,
            "full_name": a.full_name,
            "domain": a.domain,
            "weakness_score": round(p.weakness_score, 2),
            "times_wrong": p.times_tested_wrong,
            "total": p.times_tested,
        })
    weak.sort(key=lambda w: (w["weakness_score"], w["times_wrong"]), reverse=True)
    return weak[:limit]


def get_weak_domains(
    acronyms: Sequence[AcronymEntry], progress: dict[str, AcronymProgress], threshold: float = 70.0
) -> list[dict]:
    """Domains whose acronym test accuracy is below threshold (lowest first)."""
    totals: dict[int, list[int]] = {}
    for a in acronyms:
        p = progress.get(a.id)
        if p is None or p.times_tested == 0:
            continue
        correct_total = totals.setdefault(a.domain, [0, 0])
        correct_total[0] += p.times_tested_correct
        correct_total[1] += p.times_tested
    results = []
    for domain, (correct, total) in totals.items():
        score = round(correct / total * 100, 1)
        if score < threshold:
            results.append({
                "domain": domain,
                "domain_name": DOMAIN_NAMES.get(domain, str(domain)),
                "correct": correct,
                "total": total,
                "score": score,
            })
    results.sort(key=lambda r: r["score"])
    return results


def group_missed_questions(bank: QuestionBank, answers: Iterable[ExamAnswer]) -> dict[int, dict[str, list[dict]]]:
    """Missed exam questions grouped by domain, then subdomain.

    This is the payload handed to the study-summary generator.
    """
    grouped: dict[int, dict[str, list[dict]]] = {}
    for a in answers:
        if a.correct:
            continue
        q = bank.get(a.question_id)
        if q is None:
            continue
        grouped.setdefault(q.domain, {}).setdefault(q.subdomain or "General", []).append({
            "question_id": q.id,
            "topic": q.topic,
            "stem": q.stem,
            "explanation": q.explanation,
        })
    return dict(sorted(grouped.items()))
