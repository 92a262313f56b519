"""Per-user progress store: acronym counters, question history and saved sessions."""
import json
from dataclasses import asdict
from datetime import datetime
from typing import Iterable, Optional

from loguru import logger

from secplus_tutor.db import get_connection
from secplus_tutor.mastery import apply_test_answer, apply_training_swipe
from secplus_tutor.models import (
    AcronymProgress, ExamAnswer, ExamSession, MasteryLevel, QuestionHistoryEntry,
    StudySession,
)

PROGRESS_COLUMNS = (
    "times_seen_in_training", "times_tested_correct", "times_tested_wrong",
    "confidence_swipes", "practice_swipes", "last_seen", "last_tested",
    "accuracy_rate", "weakness_score", "mastery_level", "streak",
)


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_progress(row) -> AcronymProgress:
    return AcronymProgress(
        acronym_id=row["acronym_id"],
        times_seen_in_training=row["times_seen_in_training"],
        times_tested_correct=row["times_tested_correct"],
        times_tested_wrong=row["times_tested_wrong"],
        confidence_swipes=row["confidence_swipes"],
        practice_swipes=row["practice_swipes"],
        last_seen=_parse_ts(row["last_seen"]),
        last_tested=_parse_ts(row["last_tested"]),
        accuracy_rate=row["accuracy_rate"],
        weakness_score=row["weakness_score"],
        mastery_level=MasteryLevel(row["mastery_level"]),
        streak=row["streak"],
    )


def get_user_progress(db_path: str, user_id: str) -> dict[str, AcronymProgress]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM acronym_progress WHERE user_id = ?", (user_id,)
    ).fetchall()
    conn.close()
    return {row["acronym_id"]: _row_to_progress(row) for row in rows}


def get_acronym_progress(db_path: str, user_id: str, acronym_id: str) -> AcronymProgress:
    """Stored record for one acronym, or the neutral prior if there is none."""
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM acronym_progress WHERE user_id = ? AND acronym_id = ?",
        (user_id, acronym_id),
    ).fetchone()
    conn.close()
    return _row_to_progress(row) if row else AcronymProgress.unseen(acronym_id)


def _save_progress(db_path: str, user_id: str, progress: AcronymProgress) -> None:
    values = (
        progress.times_seen_in_training, progress.times_tested_correct,
        progress.times_tested_wrong, progress.confidence_swipes, progress.practice_swipes,
        _ts(progress.last_seen), _ts(progress.last_tested), progress.accuracy_rate,
        progress.weakness_score, progress.mastery_level.value, progress.streak,
    )
    columns = ", ".join(PROGRESS_COLUMNS)
    placeholders = ", ".join("?" for _ in PROGRESS_COLUMNS)
    updates = ", ".join(f"{c}=excluded.{c}" for c in PROGRESS_COLUMNS)
    conn = get_connection(db_path)
    conn.execute(
        f"""INSERT INTO acronym_progress (user_id, acronym_id, {columns})
        VALUES (?, ?, {placeholders})
        ON CONFLICT(user_id, acronym_id) DO UPDATE SET {updates}""",
        (user_id, progress.acronym_id, *values),
    )
    conn.commit()
    conn.close()


def record_training_swipe(
    db_path: str, user_id: str, acronym_id: str, direction: str, now: Optional[datetime] = None
) -> AcronymProgress:
    current = get_acronym_progress(db_path, user_id, acronym_id)
    updated = apply_training_swipe(current, direction, now or datetime.now())
    _save_progress(db_path, user_id, updated)
    logger.debug(f"Swipe {direction} on {acronym_id} for {user_id}")
    return updated


def record_test_answer(
    db_path: str, user_id: str, acronym_id: str, correct: bool, now: Optional[datetime] = None
) -> AcronymProgress:
    current = get_acronym_progress(db_path, user_id, acronym_id)
    updated = apply_test_answer(current, correct, now or datetime.now())
    _save_progress(db_path, user_id, updated)
    logger.debug(
        f"Test answer on {acronym_id} for {user_id}: correct={correct} "
        f"-> {updated.mastery_level.value} (weakness {updated.weakness_score:.2f})"
    )
    return updated


# --- Exam question history ---


def get_question_history(db_path: str, user_id: str) -> dict[str, QuestionHistoryEntry]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM question_history WHERE user_id = ?", (user_id,)
    ).fetchall()
    conn.close()
    return {
        row["question_id"]: QuestionHistoryEntry(
            question_id=row["question_id"],
            times_seen=row["times_seen"],
            times_correct=row["times_correct"],
            times_wrong=row["times_wrong"],
            last_seen=_parse_ts(row["last_seen"]),
        )
        for row in rows
    }


def record_question_results(
    db_path: str, user_id: str, answers: Iterable[ExamAnswer], now: Optional[datetime] = None
) -> None:
    seen_at = _ts(now or datetime.now())
    conn = get_connection(db_path)
    for a in answers:
        conn.execute(
            """INSERT INTO question_history
            (user_id, question_id, times_seen, times_correct, times_wrong, last_seen)
            VALUES (?, ?, 1, ?, ?, ?)
            ON CONFLICT(user_id, question_id) DO UPDATE SET
                times_seen = times_seen + 1,
                times_correct = times_correct + excluded.times_correct,
                times_wrong = times_wrong + excluded.times_wrong,
                last_seen = excluded.last_seen""",
            (user_id, a.question_id, int(a.correct), int(not a.correct), seen_at),
        )
    conn.commit()
    conn.close()


# --- Sessions ---


def save_study_session(db_path: str, user_id: str, session: StudySession) -> int:
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO study_sessions
        (user_id, mode, started_at, completed_at, total_questions, correct_answers, score,
         duration_seconds, acronyms_missed, domain_breakdown, category_breakdown)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            user_id, session.mode, _ts(session.started_at), _ts(session.completed_at),
            session.total_questions, session.correct_answers, session.score,
            session.duration_seconds, json.dumps(session.acronyms_missed),
            json.dumps({str(k): asdict(v) for k, v in session.domain_breakdown.items()}),
            json.dumps({k: asdict(v) for k, v in session.category_breakdown.items()}),
        ),
    )
    conn.commit()
    session_id = cur.lastrowid
    conn.close()
    logger.info(f"Saved {session.mode} session {session_id} for {user_id}: {session.score:.0f}%")
    return session_id


def get_study_sessions(db_path: str, user_id: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_sessions WHERE user_id = ? ORDER BY started_at DESC", (user_id,)
    ).fetchall()
    conn.close()
    sessions = []
    for row in rows:
        s = dict(row)
        s["acronyms_missed"] = json.loads(s["acronyms_missed"])
        s["domain_breakdown"] = json.loads(s["domain_breakdown"])
        s["category_breakdown"] = json.loads(s["category_breakdown"])
        sessions.append(s)
    return sessions


def save_exam_session(db_path: str, user_id: str, session: ExamSession) -> int:
    """Persist a finished exam session once."""
    if not session.finished or session.result is None:
        raise ValueError("Only finished exam sessions can be saved")
    result = session.result
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO exam_sessions
        (user_id, preset, total_questions, time_limit_minutes, started_at, completed_at,
         time_used_seconds, total_points_earned, total_points_possible, percentage, passed,
         answers, domain_breakdown, ai_summary)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            user_id, session.config.preset, session.config.total_questions,
            session.config.time_limit_minutes, _ts(session.started_at), _ts(session.completed_at),
            session.time_used_seconds, result.total_points_earned, result.total_points_possible,
            result.percentage, int(result.passed),
            json.dumps([asdict(a) for a in session.answers]),
            json.dumps({str(d): asdict(ds) for d, ds in result.domain_breakdown.items()}),
            session.ai_summary,
        ),
    )
    conn.commit()
    session_id = cur.lastrowid
    conn.close()
    logger.info(
        f"Saved {session.config.preset} exam {session_id} for {user_id}: "
        f"{result.percentage:.1f}% ({'pass' if result.passed else 'fail'})"
    )
    return session_id


def update_exam_session_summary(db_path: str, session_id: int, ai_summary: str) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE exam_sessions SET ai_summary = ? WHERE id = ?", (ai_summary, session_id))
    conn.commit()
    conn.close()


def get_exam_sessions(db_path: str, user_id: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM exam_sessions WHERE user_id = ? ORDER BY completed_at DESC", (user_id,)
    ).fetchall()
    conn.close()
    sessions = []
    for row in rows:
        s = dict(row)
        s["passed"] = bool(s["passed"])
        s["answers"] = json.loads(s["answers"])
        s["domain_breakdown"] = json.loads(s["domain_breakdown"])
        sessions.append(s)
    return sessions
