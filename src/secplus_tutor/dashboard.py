"""Readiness dashboard scoring and statistics."""
from collections import Counter
from typing import Sequence

from secplus_tutor.catalogue import DOMAINS
from secplus_tutor.db import get_connection
from secplus_tutor.models import DOMAIN_NAMES, AcronymEntry, AcronymProgress, MasteryLevel

KNOWN_LEVELS = (MasteryLevel.CONFIDENT, MasteryLevel.MASTERED)
RECENT_EXAMS = 3


def get_readiness_label(score: float) -> str:
    if score >= 80:
        return "READY"
    elif score >= 65:
        return "LIKELY"
    elif score >= 50:
        return "NEEDS WORK"
    return "NOT READY"


def get_readiness_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"


def _is_known(progress: dict[str, AcronymProgress], acronym_id: str) -> bool:
    p = progress.get(acronym_id)
    return p is not None and p.mastery_level in KNOWN_LEVELS


def get_mastery_counts(acronyms: Sequence[AcronymEntry], progress: dict[str, AcronymProgress]) -> dict[MasteryLevel, int]:
    """How many catalogue acronyms sit in each mastery tier."""
    counts = Counter(
        progress[a.id].mastery_level if a.id in progress else MasteryLevel.UNSEEN
        for a in acronyms
    )
    return {level: counts.get(level, 0) for level in MasteryLevel}


def get_mastery_percent(acronyms: Sequence[AcronymEntry], progress: dict[str, AcronymProgress]) -> float:
    if not acronyms:
        return 0.0
    known = sum(1 for a in acronyms if _is_known(progress, a.id))
    return round(known / len(acronyms) * 100, 1)


def get_domain_mastery(acronyms: Sequence[AcronymEntry], progress: dict[str, AcronymProgress]) -> list[dict]:
    results = []
    for d in DOMAINS:
        in_domain = [a for a in acronyms if a.domain == d]
        known = sum(1 for a in in_domain if _is_known(progress, a.id))
        percent = known / len(in_domain) * 100 if in_domain else 0.0
        results.append({
            "domain": d,
            "name": DOMAIN_NAMES[d],
            "mastered": known,
            "total": len(in_domain),
            "percent": round(percent, 1),
            "label": get_readiness_label(percent),
        })
    return results


def get_awareness(acronyms: Sequence[AcronymEntry], progress: dict[str, AcronymProgress]) -> dict:
    records = [progress[a.id] for a in acronyms if a.id in progress]
    return {
        "total": len(acronyms),
        "seen": sum(1 for p in records if p.times_seen_in_training > 0),
        "tested": sum(1 for p in records if p.times_tested > 0),
        "mastered": sum(1 for p in records if p.mastery_level == MasteryLevel.MASTERED),
    }


def _recent_exam_average(db_path: str, user_id: str) -> float:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT percentage FROM exam_sessions WHERE user_id = ? ORDER BY completed_at DESC LIMIT ?",
        (user_id, RECENT_EXAMS),
    ).fetchall()
    conn.close()
    if not rows:
        return 0.0
    return sum(r["percentage"] for r in rows) / len(rows)


def calc_readiness_score(
    db_path: str, user_id: str, acronyms: Sequence[AcronymEntry], progress: dict[str, AcronymProgress]
) -> float:
    mastery = get_mastery_percent(acronyms, progress)
    exams = _recent_exam_average(db_path, user_id)
    # Weighted: recent exams 60%, acronym mastery 40%
    score = exams * 0.6 + mastery * 0.4
    return round(score, 1)


def get_study_stats(db_path: str, user_id: str) -> dict:
    conn = get_connection(db_path)
    trainings = conn.execute(
        "SELECT COUNT(*) FROM study_sessions WHERE user_id = ? AND mode LIKE 'training-%'", (user_id,)
    ).fetchone()[0]
    tests = conn.execute(
        "SELECT COUNT(*) FROM study_sessions WHERE user_id = ? AND mode NOT LIKE 'training-%'", (user_id,)
    ).fetchone()[0]
    exam_row = conn.execute(
        "SELECT COUNT(*) as n, AVG(percentage) as avg, SUM(passed) as passed, SUM(time_used_seconds) as secs "
        "FROM exam_sessions WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    study_secs = conn.execute(
        "SELECT SUM(duration_seconds) FROM study_sessions WHERE user_id = ?", (user_id,)
    ).fetchone()[0]
    conn.close()
    total_secs = (study_secs or 0) + (exam_row["secs"] or 0)
    return {
        "training_sessions": trainings,
        "test_sessions": tests,
        "exams_taken": exam_row["n"],
        "exams_passed": exam_row["passed"] or 0,
        "avg_exam_score": round(exam_row["avg"], 1) if exam_row["avg"] is not None else 0.0,
        "study_minutes": round(total_secs / 60),
    }
