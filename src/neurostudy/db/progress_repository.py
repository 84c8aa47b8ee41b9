"""Repository functions for focus sessions, progress and the profile mirror."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime

import structlog

from neurostudy.core.focus_session import EndReason, FocusSession, UserProgress
from neurostudy.core.preferences import UserPreferences
from neurostudy.db.database import get_db

logger = structlog.get_logger(__name__)

LOCAL_PROFILE_ID = "local"


# =============================================================================
# FOCUS SESSIONS
# =============================================================================


def save_session(session: FocusSession) -> None:
    """Insert or update a focus session."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT OR REPLACE INTO focus_sessions (
                id, task_id, planned_duration, actual_duration,
                started_at, ended_at, completed, end_reason, xp_earned
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.id,
                session.task_id,
                session.planned_duration,
                session.actual_duration,
                session.started_at.isoformat(),
                session.ended_at.isoformat() if session.ended_at else None,
                None if session.completed is None else int(session.completed),
                session.end_reason.value if session.end_reason else None,
                session.xp_earned,
            ),
        )


def get_session(session_id: str) -> FocusSession | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM focus_sessions WHERE id = ?", (session_id,)
        ).fetchone()
    if row is None:
        return None
    return _row_to_session(row)


def list_sessions(limit: int = 20) -> list[FocusSession]:
    """Most recent sessions first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM focus_sessions ORDER BY started_at DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [_row_to_session(row) for row in rows]


def _row_to_session(row: sqlite3.Row) -> FocusSession:
    return FocusSession(
        id=row["id"],
        task_id=row["task_id"],
        planned_duration=row["planned_duration"],
        actual_duration=row["actual_duration"],
        started_at=datetime.fromisoformat(row["started_at"]),
        ended_at=datetime.fromisoformat(row["ended_at"]) if row["ended_at"] else None,
        completed=None if row["completed"] is None else bool(row["completed"]),
        end_reason=EndReason(row["end_reason"]) if row["end_reason"] else None,
        xp_earned=row["xp_earned"],
    )


# =============================================================================
# PROGRESS
# =============================================================================


def get_progress() -> UserProgress:
    """Current progress; a fresh record if none was saved yet."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM user_progress WHERE id = 1").fetchone()
    if row is None:
        return UserProgress()
    return UserProgress(
        total_xp=row["total_xp"],
        total_focused_minutes=row["total_focused_minutes"],
        total_sessions_completed=row["total_sessions_completed"],
        current_streak=row["current_streak"],
        longest_streak=row["longest_streak"],
        last_session_date=row["last_session_date"],
        badges=json.loads(row["badges"]),
    )


def save_progress(progress: UserProgress) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT OR REPLACE INTO user_progress (
                id, total_xp, total_focused_minutes, total_sessions_completed,
                current_streak, longest_streak, last_session_date, badges
            ) VALUES (1, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                progress.total_xp,
                progress.total_focused_minutes,
                progress.total_sessions_completed,
                progress.current_streak,
                progress.longest_streak,
                progress.last_session_date,
                json.dumps(progress.badges),
            ),
        )


# =============================================================================
# PROFILE MIRROR
# =============================================================================


def save_profile(preferences: UserPreferences) -> None:
    """Mirror local preferences into the profiles table.

    Raises:
        sqlite3.Error: On write failure (callers log and continue)
    """
    data = preferences.to_dict()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO profiles (profile_id, selected_modes, preferences, updated_at)
            VALUES (?, ?, ?, datetime('now'))
            ON CONFLICT(profile_id) DO UPDATE SET
                selected_modes = excluded.selected_modes,
                preferences = excluded.preferences,
                updated_at = excluded.updated_at
            """,
            (
                LOCAL_PROFILE_ID,
                json.dumps(data["selected_modes"]),
                json.dumps(data),
            ),
        )
    logger.debug("profile_mirrored", modes=data["selected_modes"])


def get_profile() -> UserPreferences | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT preferences FROM profiles WHERE profile_id = ?",
            (LOCAL_PROFILE_ID,),
        ).fetchone()
    if row is None:
        return None
    return UserPreferences.from_dict(json.loads(row["preferences"]))
