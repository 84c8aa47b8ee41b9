"""Study service: the student's day, shared by the web API and the CLI.

Wires the preference store, the derived experience profile and the
database repositories together:
- preferences / energy and the profile derived from them
- today's plan (generated once per day, then reordered and progressed)
- focus sessions and progress
"""

from __future__ import annotations

import random
from datetime import date, datetime
from typing import Literal

import structlog

from neurostudy.config.app_config import load_app_config
from neurostudy.core.daily_tasks import (
    Task,
    TaskNotFoundError,
    TaskStatus,
    complete_micro_step,
    move_task,
    remove_task,
    select_daily_tasks,
)
from neurostudy.core.experience_profile import ExperienceProfile, derive_profile
from neurostudy.core.focus_session import (
    QUICK_TASK_ID,
    EndReason,
    FocusSession,
    UserProgress,
    end_focus_session,
    record_session,
    start_focus_session,
)
from neurostudy.core.modes import EnergyLevel, SupportMode
from neurostudy.core.preferences import LocalStore, PreferenceStore, UserPreferences
from neurostudy.db import curriculum_repository, progress_repository, tasks_repository
from neurostudy.db.database import init_db

logger = structlog.get_logger(__name__)


class FocusSessionNotFoundError(Exception):
    """Raised when a focus session id is unknown."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Focus session '{session_id}' not found")


class StudyService:
    """Facade over preferences, planning, focus sessions and progress."""

    def __init__(self, preference_store: PreferenceStore | None = None):
        config = load_app_config()
        init_db(config.db_path)
        self.config = config
        self.preferences_store = preference_store or PreferenceStore(
            store=LocalStore(config.state_dir),
            mirror=progress_repository.save_profile,
        )

    # =========================================================================
    # PREFERENCES & PROFILE
    # =========================================================================

    @property
    def preferences(self) -> UserPreferences:
        return self.preferences_store.preferences

    @property
    def energy_level(self) -> EnergyLevel:
        return self.preferences_store.energy_level

    def profile(self) -> ExperienceProfile:
        """Profile for the current preferences and energy."""
        return derive_profile(self.preferences, self.energy_level)

    def set_preferences(self, preferences: UserPreferences) -> ExperienceProfile:
        self.preferences_store.set_preferences(preferences)
        return self.profile()

    def update_mode(self, mode: SupportMode, enabled: bool) -> ExperienceProfile:
        self.preferences_store.update_mode(mode, enabled)
        return self.profile()

    def set_energy_level(self, level: EnergyLevel) -> ExperienceProfile:
        self.preferences_store.set_energy_level(level)
        return self.profile()

    # =========================================================================
    # DAILY PLAN
    # =========================================================================

    def today_tasks(self, today: str | None = None, generate: bool = True) -> list[Task]:
        """Today's plan; generated on first access of the day."""
        today = today or date.today().isoformat()
        tasks = tasks_repository.list_tasks(today)
        if tasks or not generate:
            return tasks
        return self.generate_tasks(today=today)

    def generate_tasks(
        self,
        today: str | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> list[Task]:
        """Build a fresh plan for the day, replacing any existing one."""
        today = today or date.today().isoformat()
        planner = self.config.planner
        # chapter_limit applies per subject
        chapters = [
            chapter
            for subject in planner.fallback_subjects
            for chapter in curriculum_repository.list_chapters(
                subject=subject,
                board=planner.default_board,
                grade=planner.default_grade,
            )[: planner.chapter_limit]
        ]

        tasks = select_daily_tasks(
            chapters,
            planner.fallback_subjects,
            self.profile(),
            rng=rng,
            seed=seed,
            today=today,
        )
        tasks_repository.replace_tasks_for_date(today, tasks)
        logger.info("tasks_generated", date=today, count=len(tasks))
        return tasks

    def _require_task(self, task_id: str) -> Task:
        task = tasks_repository.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def move_task(self, task_id: str, direction: Literal["up", "down"]) -> list[Task]:
        task = self._require_task(task_id)
        reordered = move_task(tasks_repository.list_tasks(task.date), task_id, direction)
        tasks_repository.update_order(reordered)
        return reordered

    def remove_task(self, task_id: str) -> list[Task]:
        task = self._require_task(task_id)
        remaining = remove_task(tasks_repository.list_tasks(task.date), task_id)
        tasks_repository.delete_task(task_id)
        tasks_repository.update_order(remaining)
        return remaining

    def complete_micro_step(self, task_id: str) -> Task:
        task = complete_micro_step(self._require_task(task_id))
        tasks_repository.update_task(task)
        return task

    # =========================================================================
    # FOCUS SESSIONS
    # =========================================================================

    def start_session(
        self,
        task_id: str | None = None,
        planned_duration: int | None = None,
        now: datetime | None = None,
    ) -> FocusSession:
        """Start a session; duration defaults to the profile's timer."""
        task_id = task_id or QUICK_TASK_ID
        if task_id != QUICK_TASK_ID:
            self._require_task(task_id)
        if planned_duration is None:
            planned_duration = self.profile().default_timer_minutes

        session = start_focus_session(planned_duration, task_id=task_id, now=now)
        progress_repository.save_session(session)
        if task_id != QUICK_TASK_ID:
            tasks_repository.set_task_status(task_id, TaskStatus.IN_PROGRESS)
        return session

    def end_session(
        self,
        session_id: str,
        completed: bool,
        reason: EndReason,
        now: datetime | None = None,
    ) -> tuple[FocusSession, list[str]]:
        """Finalise a session and fold it into progress.

        Returns:
            (session, newly awarded badge ids)

        Raises:
            FocusSessionNotFoundError: Unknown session
            SessionAlreadyEndedError: Session was already finalised
        """
        session = progress_repository.get_session(session_id)
        if session is None:
            raise FocusSessionNotFoundError(session_id)

        end_focus_session(session, completed, reason, now=now)
        progress_repository.save_session(session)

        new_badges: list[str] = []
        if completed:
            if session.task_id and session.task_id != QUICK_TASK_ID:
                tasks_repository.set_task_status(session.task_id, TaskStatus.COMPLETED)
            progress = progress_repository.get_progress()
            new_badges = record_session(
                progress,
                session,
                chapters_completed=tasks_repository.count_completed_chapters(),
            )
            progress_repository.save_progress(progress)

        return session, new_badges

    def progress(self) -> UserProgress:
        return progress_repository.get_progress()


# Global service instance
_study_service: StudyService | None = None


def get_study_service() -> StudyService:
    """Get the global study service instance."""
    global _study_service
    if _study_service is None:
        _study_service = StudyService()
    return _study_service


def reset_study_service() -> None:
    """Reset the global study service (for testing)."""
    global _study_service
    _study_service = None
