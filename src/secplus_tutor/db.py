"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from secplus_tutor.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS acronym_progress (
    user_id TEXT NOT NULL,
    acronym_id TEXT NOT NULL,
    times_seen_in_training INTEGER DEFAULT 0,
    times_tested_correct INTEGER DEFAULT 0,
    times_tested_wrong INTEGER DEFAULT 0,
    confidence_swipes INTEGER DEFAULT 0,
    practice_swipes INTEGER DEFAULT 0,
    last_seen TEXT,
    last_tested TEXT,
    accuracy_rate REAL DEFAULT 0,
    weakness_score REAL DEFAULT 0.5,
    mastery_level TEXT DEFAULT 'unseen',
    streak INTEGER DEFAULT 0,
    PRIMARY KEY (user_id, acronym_id)
);

CREATE TABLE IF NOT EXISTS question_history (
    user_id TEXT NOT NULL,
    question_id TEXT NOT NULL,
    times_seen INTEGER DEFAULT 0,
    times_correct INTEGER DEFAULT 0,
    times_wrong INTEGER DEFAULT 0,
    last_seen TEXT,
    PRIMARY KEY (user_id, question_id)
);

CREATE TABLE IF NOT EXISTS study_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    mode TEXT NOT NULL,
    started_at TEXT NOT NULL,
    completed_at TEXT,
    total_questions INTEGER NOT NULL,
    correct_answers INTEGER NOT NULL,
    score REAL NOT NULL,
    duration_seconds INTEGER NOT NULL,
    acronyms_missed TEXT DEFAULT '[]',
    domain_breakdown TEXT DEFAULT '{}',
    category_breakdown TEXT DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS exam_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    preset TEXT NOT NULL,
    total_questions INTEGER NOT NULL,
    time_limit_minutes INTEGER NOT NULL,
    started_at TEXT NOT NULL,
    completed_at TEXT NOT NULL,
    time_used_seconds INTEGER NOT NULL,
    total_points_earned REAL NOT NULL,
    total_points_possible REAL NOT NULL,
    percentage REAL NOT NULL,
    passed INTEGER NOT NULL,
    answers TEXT NOT NULL,
    domain_breakdown TEXT NOT NULL,
    ai_summary TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
