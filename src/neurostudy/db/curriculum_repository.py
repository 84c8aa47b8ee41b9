"""Repository functions for chapters and practice questions."""

from __future__ import annotations

import json
import sqlite3
from typing import Sequence

import structlog

from neurostudy.core.curriculum import Chapter, PracticeQuestion
from neurostudy.db.database import get_db

logger = structlog.get_logger(__name__)


def seed_curriculum(chapters: Sequence[Chapter]) -> int:
    """Insert or replace chapters and their questions.

    Re-seeding the same curriculum is idempotent.

    Returns:
        Number of chapters written
    """
    with get_db() as conn:
        for chapter in chapters:
            conn.execute(
                """
                INSERT OR REPLACE INTO chapters (
                    id, subject_name, board, grade, chapter_number,
                    title, summary, key_points
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    chapter.id,
                    chapter.subject_name,
                    chapter.board,
                    chapter.grade,
                    chapter.chapter_number,
                    chapter.title,
                    chapter.summary,
                    json.dumps(chapter.key_points),
                ),
            )
            conn.execute(
                "DELETE FROM practice_questions WHERE chapter_id = ?", (chapter.id,)
            )
            for q in chapter.questions:
                conn.execute(
                    """
                    INSERT INTO practice_questions (
                        id, chapter_id, question_text, question_type,
                        options, correct_answer, is_math, math_steps
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        q.id,
                        chapter.id,
                        q.question_text,
                        q.question_type,
                        json.dumps(q.options),
                        q.correct_answer,
                        int(q.is_math),
                        json.dumps(q.math_steps),
                    ),
                )

    logger.info("curriculum_seeded", chapters=len(chapters))
    return len(chapters)


def list_chapters(
    subject: str | None = None,
    board: str | None = None,
    grade: int | None = None,
) -> list[Chapter]:
    """List chapters (without questions), optionally filtered."""
    query = "SELECT * FROM chapters WHERE 1 = 1"
    params: list = []
    if subject:
        query += " AND subject_name = ?"
        params.append(subject)
    if board:
        query += " AND board = ?"
        params.append(board)
    if grade is not None:
        query += " AND grade = ?"
        params.append(grade)
    query += " ORDER BY subject_name, chapter_number"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_chapter(row) for row in rows]


def list_subjects() -> list[str]:
    """Distinct subject names present in the curriculum."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT DISTINCT subject_name FROM chapters ORDER BY subject_name"
        ).fetchall()
    return [row["subject_name"] for row in rows]


def get_chapter(chapter_id: str) -> Chapter | None:
    """Get a chapter with its practice questions.

    Returns:
        Chapter if found, None otherwise
    """
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM chapters WHERE id = ?", (chapter_id,)
        ).fetchone()
        if row is None:
            return None
        question_rows = conn.execute(
            "SELECT * FROM practice_questions WHERE chapter_id = ? ORDER BY id",
            (chapter_id,),
        ).fetchall()

    chapter = _row_to_chapter(row)
    chapter.questions = [_row_to_question(q) for q in question_rows]
    return chapter


def _row_to_chapter(row: sqlite3.Row) -> Chapter:
    return Chapter(
        id=row["id"],
        subject_name=row["subject_name"],
        title=row["title"],
        board=row["board"],
        grade=row["grade"],
        chapter_number=row["chapter_number"],
        summary=row["summary"],
        key_points=json.loads(row["key_points"]),
    )


def _row_to_question(row: sqlite3.Row) -> PracticeQuestion:
    return PracticeQuestion(
        id=row["id"],
        chapter_id=row["chapter_id"],
        question_text=row["question_text"],
        correct_answer=row["correct_answer"],
        question_type=row["question_type"],
        options=json.loads(row["options"]),
        is_math=bool(row["is_math"]),
        math_steps=json.loads(row["math_steps"]),
    )
