"""Daily task planning.

Responsibilities:
- Select today's study tasks from candidate chapters
- Reorder, remove and progress tasks through their micro-steps

Selection is random: subjects are shuffled, one chapter is drawn per
subject and the plan is capped at the profile's max_tasks_today. Pass an
explicit random.Random (or seed) for a reproducible plan.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Literal, Sequence

import structlog

from neurostudy.core.curriculum import Chapter
from neurostudy.core.experience_profile import ExperienceProfile
from neurostudy.core.micro_steps import generate_micro_steps

logger = structlog.get_logger(__name__)

Direction = Literal["up", "down"]


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class TaskNotFoundError(Exception):
    """Raised when a task id is not in the plan."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' not found")


@dataclass
class Task:
    """A study-plan item for one day."""

    title: str
    subject_name: str
    estimated_minutes: int
    micro_steps: list[str] = field(default_factory=list)
    chapter_id: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    order_index: int = 0
    completed_micro_steps: int = 0
    date: str = ""
    id: str = ""

    def __post_init__(self):
        if not self.id:
            self.id = str(uuid.uuid4())
        if not self.date:
            self.date = date.today().isoformat()

    @property
    def current_step(self) -> str | None:
        """Next micro-step to work on, or None when all are done."""
        if self.completed_micro_steps >= len(self.micro_steps):
            return None
        return self.micro_steps[self.completed_micro_steps]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "title": self.title,
            "subject_name": self.subject_name,
            "chapter_id": self.chapter_id,
            "estimated_minutes": self.estimated_minutes,
            "status": self.status.value,
            "order_index": self.order_index,
            "micro_steps": list(self.micro_steps),
            "completed_micro_steps": self.completed_micro_steps,
        }


def select_daily_tasks(
    chapters: Sequence[Chapter],
    subjects: Sequence[str],
    profile: ExperienceProfile,
    rng: random.Random | None = None,
    seed: int | None = None,
    today: str | None = None,
) -> list[Task]:
    """Pick today's tasks.

    Args:
        chapters: Candidate chapters
        subjects: Subjects the student studies
        profile: Current experience profile (cap, timer, step granularity)
        rng: Random source; defaults to a fresh Random(seed)
        seed: Seed used when rng is not given
        today: ISO date stamped on the tasks (default: today)

    Returns:
        At most profile.max_tasks_today tasks, one per subject, ordered.
    """
    rng = rng or random.Random(seed)

    shuffled = list(dict.fromkeys(subjects))
    rng.shuffle(shuffled)

    tasks: list[Task] = []
    for subject in shuffled:
        if len(tasks) >= profile.max_tasks_today:
            break
        candidates = [c for c in chapters if c.subject_name == subject]
        if not candidates:
            continue
        chapter = rng.choice(candidates)
        tasks.append(
            Task(
                title=chapter.title,
                subject_name=subject,
                chapter_id=chapter.id,
                estimated_minutes=profile.default_timer_minutes,
                micro_steps=generate_micro_steps(
                    chapter.title, profile.detailed_micro_steps
                ),
                order_index=len(tasks),
                date=today or "",
            )
        )

    logger.info(
        "daily_tasks_selected",
        count=len(tasks),
        cap=profile.max_tasks_today,
        subjects=len(shuffled),
    )
    return tasks


def _index_of(tasks: list[Task], task_id: str) -> int:
    for i, task in enumerate(tasks):
        if task.id == task_id:
            return i
    raise TaskNotFoundError(task_id)


def _renumber(tasks: list[Task]) -> list[Task]:
    for i, task in enumerate(tasks):
        task.order_index = i
    return tasks


def move_task(tasks: list[Task], task_id: str, direction: Direction) -> list[Task]:
    """Swap a task with its neighbour. Moving past either end is a no-op.

    Returns a new list with order_index renumbered from 0.
    """
    ordered = list(tasks)
    index = _index_of(ordered, task_id)
    new_index = index - 1 if direction == "up" else index + 1
    if new_index < 0 or new_index >= len(ordered):
        return ordered
    ordered[index], ordered[new_index] = ordered[new_index], ordered[index]
    return _renumber(ordered)


def remove_task(tasks: list[Task], task_id: str) -> list[Task]:
    """Drop a task from the plan."""
    index = _index_of(tasks, task_id)
    remaining = tasks[:index] + tasks[index + 1 :]
    return _renumber(remaining)


def complete_micro_step(task: Task) -> Task:
    """Advance the task's progress counter by one step.

    A pending task becomes in_progress; the counter never passes the
    number of steps.
    """
    if task.completed_micro_steps < len(task.micro_steps):
        task.completed_micro_steps += 1
    if task.status == TaskStatus.PENDING:
        task.status = TaskStatus.IN_PROGRESS
    return task
