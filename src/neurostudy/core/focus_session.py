"""Focus sessions and gamified progress.

A focus session is one timed attempt at a task. It is created when the
timer starts and finalised exactly once when it ends; a finalised session
is never re-opened.

XP: a completed session earns its planned duration in XP, an abandoned one
earns nothing. Completed sessions also update totals, the daily streak and
badges.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

QUICK_TASK_ID = "quick"

BADGE_FIRST_SESSION = "first_session"
BADGE_STREAK_3 = "streak_3"
BADGE_STREAK_7 = "streak_7"
BADGE_HOURS_5 = "hours_5"
BADGE_CHAPTERS_10 = "chapters_10"

HOURS_5_MINUTES = 5 * 60


class EndReason(str, Enum):
    COMPLETED = "completed"
    USER_STOPPED = "user_stopped"
    TAB_LEFT = "tab_left"


class SessionAlreadyEndedError(Exception):
    """Raised when ending a session that was already finalised."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Focus session '{session_id}' has already ended")


# =============================================================================
# DATA CLASSES
# =============================================================================


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FocusSession:
    planned_duration: int
    task_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=_now)
    ended_at: datetime | None = None
    actual_duration: int | None = None
    completed: bool | None = None
    end_reason: EndReason | None = None
    xp_earned: int | None = None

    @property
    def is_finished(self) -> bool:
        return self.ended_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "planned_duration": self.planned_duration,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "actual_duration": self.actual_duration,
            "completed": self.completed,
            "end_reason": self.end_reason.value if self.end_reason else None,
            "xp_earned": self.xp_earned,
        }


@dataclass
class Badge:
    id: str
    name: str
    description: str
    icon: str


BADGES: tuple[Badge, ...] = (
    Badge(BADGE_FIRST_SESSION, "First Step", "Complete your first focus session", "🌱"),
    Badge(BADGE_STREAK_3, "3 Day Streak", "Study 3 days in a row", "🔥"),
    Badge(BADGE_STREAK_7, "Week Warrior", "Study 7 days in a row", "⭐"),
    Badge(BADGE_HOURS_5, "Five Hours", "Accumulate 5 hours of focus time", "🏆"),
    Badge(BADGE_CHAPTERS_10, "Bookworm", "Complete 10 chapters", "📚"),
)


@dataclass
class UserProgress:
    total_xp: int = 0
    total_focused_minutes: int = 0
    total_sessions_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_session_date: str | None = None
    badges: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_xp": self.total_xp,
            "total_focused_minutes": self.total_focused_minutes,
            "total_sessions_completed": self.total_sessions_completed,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_session_date": self.last_session_date,
            "badges": list(self.badges),
        }


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================


def start_focus_session(
    planned_duration: int,
    task_id: str | None = None,
    now: datetime | None = None,
) -> FocusSession:
    """Create a session when the timer starts."""
    if planned_duration <= 0:
        raise ValueError("Planned duration must be positive")
    session = FocusSession(
        planned_duration=planned_duration,
        task_id=task_id,
        started_at=now or _now(),
    )
    logger.info(
        "focus_session_started",
        session_id=session.id,
        task_id=task_id,
        planned_duration=planned_duration,
    )
    return session


def end_focus_session(
    session: FocusSession,
    completed: bool,
    reason: EndReason,
    now: datetime | None = None,
) -> FocusSession:
    """Finalise a session: duration in whole minutes, XP, end reason.

    Raises:
        SessionAlreadyEndedError: If the session was already finalised
    """
    if session.is_finished:
        raise SessionAlreadyEndedError(session.id)

    ended_at = now or _now()
    elapsed = max(ended_at - session.started_at, timedelta(0))

    session.ended_at = ended_at
    session.actual_duration = int(elapsed.total_seconds() // 60)
    session.completed = completed
    session.end_reason = reason
    session.xp_earned = session.planned_duration if completed else 0

    logger.info(
        "focus_session_ended",
        session_id=session.id,
        completed=completed,
        reason=reason.value,
        actual_duration=session.actual_duration,
        xp=session.xp_earned,
    )
    return session


# =============================================================================
# PROGRESS
# =============================================================================


def _advance_streak(progress: UserProgress, today: date) -> None:
    if progress.last_session_date:
        last = date.fromisoformat(progress.last_session_date)
        gap = (today - last).days
        if gap == 0:
            return
        progress.current_streak = progress.current_streak + 1 if gap == 1 else 1
    else:
        progress.current_streak = 1
    progress.last_session_date = today.isoformat()
    progress.longest_streak = max(progress.longest_streak, progress.current_streak)


def _earned_badges(progress: UserProgress, chapters_completed: int) -> list[str]:
    earned = []
    if progress.total_sessions_completed >= 1:
        earned.append(BADGE_FIRST_SESSION)
    if progress.current_streak >= 3:
        earned.append(BADGE_STREAK_3)
    if progress.current_streak >= 7:
        earned.append(BADGE_STREAK_7)
    if progress.total_focused_minutes >= HOURS_5_MINUTES:
        earned.append(BADGE_HOURS_5)
    if chapters_completed >= 10:
        earned.append(BADGE_CHAPTERS_10)
    return earned


def record_session(
    progress: UserProgress,
    session: FocusSession,
    chapters_completed: int = 0,
) -> list[str]:
    """Fold a finished session into the student's progress.

    Only completed sessions count. Returns newly awarded badge ids.
    """
    if not session.completed or session.ended_at is None:
        return []

    progress.total_xp += session.xp_earned or 0
    progress.total_focused_minutes += session.actual_duration or 0
    progress.total_sessions_completed += 1
    _advance_streak(progress, session.ended_at.date())

    new_badges = [
        b for b in _earned_badges(progress, chapters_completed) if b not in progress.badges
    ]
    progress.badges.extend(new_badges)

    if new_badges:
        logger.info("badges_awarded", badges=new_badges)
    return new_badges
