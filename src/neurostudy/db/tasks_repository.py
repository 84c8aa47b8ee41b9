"""Repository functions for the daily_tasks table."""

from __future__ import annotations

import json
import sqlite3
from typing import Sequence

import structlog

from neurostudy.core.daily_tasks import Task, TaskStatus
from neurostudy.db.database import get_db

logger = structlog.get_logger(__name__)


def replace_tasks_for_date(date: str, tasks: Sequence[Task]) -> None:
    """Replace the whole plan for a date (used after generating a plan)."""
    with get_db() as conn:
        conn.execute("DELETE FROM daily_tasks WHERE date = ?", (date,))
        for task in tasks:
            _insert(conn, task)

    logger.info("tasks_saved", date=date, count=len(tasks))


def _insert(conn: sqlite3.Connection, task: Task) -> None:
    conn.execute(
        """
        INSERT INTO daily_tasks (
            id, date, title, subject_name, chapter_id, estimated_minutes,
            status, order_index, micro_steps, completed_micro_steps
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            task.id,
            task.date,
            task.title,
            task.subject_name,
            task.chapter_id,
            task.estimated_minutes,
            task.status.value,
            task.order_index,
            json.dumps(task.micro_steps),
            task.completed_micro_steps,
        ),
    )


def list_tasks(date: str) -> list[Task]:
    """Tasks planned for a date, in plan order."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM daily_tasks WHERE date = ? ORDER BY order_index",
            (date,),
        ).fetchall()
    return [_row_to_task(row) for row in rows]


def get_task(task_id: str) -> Task | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM daily_tasks WHERE id = ?", (task_id,)
        ).fetchone()
    if row is None:
        return None
    return _row_to_task(row)


def update_task(task: Task) -> None:
    """Persist status, order and micro-step progress of a task."""
    with get_db() as conn:
        conn.execute(
            """
            UPDATE daily_tasks
            SET status = ?, order_index = ?, completed_micro_steps = ?
            WHERE id = ?
            """,
            (task.status.value, task.order_index, task.completed_micro_steps, task.id),
        )


def update_order(tasks: Sequence[Task]) -> None:
    with get_db() as conn:
        for task in tasks:
            conn.execute(
                "UPDATE daily_tasks SET order_index = ? WHERE id = ?",
                (task.order_index, task.id),
            )


def set_task_status(task_id: str, status: TaskStatus) -> bool:
    """Returns True if the task existed."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE daily_tasks SET status = ? WHERE id = ?",
            (status.value, task_id),
        )
    return cursor.rowcount > 0


def delete_task(task_id: str) -> bool:
    """Delete a task. Returns True if it existed."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM daily_tasks WHERE id = ?", (task_id,))
    deleted = cursor.rowcount > 0
    if deleted:
        logger.info("task_deleted", task_id=task_id)
    return deleted


def count_completed_chapters() -> int:
    """Distinct chapters with at least one completed task."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT COUNT(DISTINCT chapter_id) AS n FROM daily_tasks
            WHERE status = 'completed' AND chapter_id IS NOT NULL
            """
        ).fetchone()
    return row["n"]


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=row["id"],
        date=row["date"],
        title=row["title"],
        subject_name=row["subject_name"],
        chapter_id=row["chapter_id"],
        estimated_minutes=row["estimated_minutes"],
        status=TaskStatus(row["status"]),
        order_index=row["order_index"],
        micro_steps=json.loads(row["micro_steps"]),
        completed_micro_steps=row["completed_micro_steps"],
    )
