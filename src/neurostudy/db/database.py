"""SQLite storage for curriculum, plans, focus sessions and progress.

A single database file per process, chosen by init_db(). Every call to
get_db() opens a fresh connection and commits on a clean exit.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_DB_PATH = Path("db/neurostudy.db")

# JSON-encoded list/dict columns: key_points, options, math_steps,
# micro_steps, badges, selected_modes, preferences
SCHEMA = """
-- Curriculum (read-only for the app, loaded by `seed`)
CREATE TABLE IF NOT EXISTS chapters (
    id TEXT PRIMARY KEY,
    subject_name TEXT NOT NULL,
    board TEXT NOT NULL DEFAULT 'CBSE',
    grade INTEGER NOT NULL DEFAULT 8,
    chapter_number INTEGER NOT NULL DEFAULT 1,
    title TEXT NOT NULL,
    summary TEXT NOT NULL DEFAULT '',
    key_points TEXT NOT NULL DEFAULT '[]'
);

CREATE TABLE IF NOT EXISTS practice_questions (
    id TEXT PRIMARY KEY,
    chapter_id TEXT NOT NULL REFERENCES chapters(id) ON DELETE CASCADE,
    question_text TEXT NOT NULL,
    question_type TEXT NOT NULL DEFAULT 'mcq',
    options TEXT NOT NULL DEFAULT '[]',
    correct_answer TEXT NOT NULL,
    is_math INTEGER NOT NULL DEFAULT 0,
    math_steps TEXT NOT NULL DEFAULT '[]'
);

-- Daily plan
CREATE TABLE IF NOT EXISTS daily_tasks (
    id TEXT PRIMARY KEY,
    date TEXT NOT NULL,
    title TEXT NOT NULL,
    subject_name TEXT NOT NULL,
    chapter_id TEXT,
    estimated_minutes INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK(status IN ('pending', 'in_progress', 'completed', 'skipped')),
    order_index INTEGER NOT NULL DEFAULT 0,
    micro_steps TEXT NOT NULL DEFAULT '[]',
    completed_micro_steps INTEGER NOT NULL DEFAULT 0
);

-- Focus sessions; task_id may be 'quick' (no plan task)
CREATE TABLE IF NOT EXISTS focus_sessions (
    id TEXT PRIMARY KEY,
    task_id TEXT,
    planned_duration INTEGER NOT NULL,
    actual_duration INTEGER,
    started_at TEXT NOT NULL,
    ended_at TEXT,
    completed INTEGER,
    end_reason TEXT CHECK(end_reason IN ('completed', 'user_stopped', 'tab_left')),
    xp_earned INTEGER
);

-- Single-row progress record
CREATE TABLE IF NOT EXISTS user_progress (
    id INTEGER PRIMARY KEY CHECK(id = 1),
    total_xp INTEGER NOT NULL DEFAULT 0,
    total_focused_minutes INTEGER NOT NULL DEFAULT 0,
    total_sessions_completed INTEGER NOT NULL DEFAULT 0,
    current_streak INTEGER NOT NULL DEFAULT 0,
    longest_streak INTEGER NOT NULL DEFAULT 0,
    last_session_date TEXT,
    badges TEXT NOT NULL DEFAULT '[]'
);

-- Remote mirror of the local preferences
CREATE TABLE IF NOT EXISTS profiles (
    profile_id TEXT PRIMARY KEY,
    selected_modes TEXT NOT NULL DEFAULT '[]',
    preferences TEXT NOT NULL DEFAULT '{}',
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Indices
CREATE INDEX IF NOT EXISTS idx_chapters_subject ON chapters(subject_name);
CREATE INDEX IF NOT EXISTS idx_questions_chapter ON practice_questions(chapter_id);
CREATE INDEX IF NOT EXISTS idx_tasks_date ON daily_tasks(date);
CREATE INDEX IF NOT EXISTS idx_sessions_task ON focus_sessions(task_id);
"""

_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Select the database file and create any missing tables.

    Args:
        db_path: Database file (default db/neurostudy.db, relative to cwd)
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    with get_db() as conn:
        conn.executescript(SCHEMA)

    logger.info("database_initialized", path=str(_db_path))


def get_db_path() -> Path:
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Connection with sqlite3.Row rows and foreign keys enforced.

    Rolled back and re-raised on error.
    """
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
