"""Curriculum content (chapters and practice questions).

Curriculum is read-only for the application. A demo curriculum ships in
data/curriculum/demo_curriculum_v1.yaml and is loaded into the database
by the `seed` command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

DEMO_CURRICULUM_FILE = Path("data/curriculum/demo_curriculum_v1.yaml")
BOARDS = ("CBSE", "IGCSE")


class CurriculumLoadError(Exception):
    """Raised when a curriculum file cannot be read."""


@dataclass
class PracticeQuestion:
    id: str
    chapter_id: str
    question_text: str
    correct_answer: str
    question_type: str = "mcq"
    options: list[str] = field(default_factory=list)
    is_math: bool = False
    math_steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chapter_id": self.chapter_id,
            "question_text": self.question_text,
            "question_type": self.question_type,
            "options": self.options,
            "correct_answer": self.correct_answer,
            "is_math": self.is_math,
            "math_steps": self.math_steps,
        }


@dataclass
class Chapter:
    id: str
    subject_name: str
    title: str
    board: str = "CBSE"
    grade: int = 8
    chapter_number: int = 1
    summary: str = ""
    key_points: list[str] = field(default_factory=list)
    questions: list[PracticeQuestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject_name": self.subject_name,
            "title": self.title,
            "board": self.board,
            "grade": self.grade,
            "chapter_number": self.chapter_number,
            "summary": self.summary,
            "key_points": self.key_points,
        }


def load_curriculum_file(path: Path | None = None) -> list[Chapter]:
    """Load chapters (with their questions) from a curriculum YAML file.

    Args:
        path: Curriculum file. Defaults to the demo curriculum.

    Returns:
        List of chapters in file order

    Raises:
        CurriculumLoadError: If the file is missing or malformed
    """
    path = path or DEMO_CURRICULUM_FILE
    if not path.exists():
        raise CurriculumLoadError(f"Curriculum file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise CurriculumLoadError(f"Invalid curriculum file {path}: {e}") from e

    chapters: list[Chapter] = []
    for cdata in data.get("chapters", []):
        try:
            chapter_id = cdata["id"]
            chapter = Chapter(
                id=chapter_id,
                subject_name=cdata["subject"],
                title=cdata["title"],
                board=cdata.get("board", "CBSE"),
                grade=int(cdata.get("grade", 8)),
                chapter_number=int(cdata.get("chapter_number", 1)),
                summary=cdata.get("summary", ""),
                key_points=list(cdata.get("key_points", [])),
            )
            for i, qdata in enumerate(cdata.get("questions", []), start=1):
                chapter.questions.append(
                    PracticeQuestion(
                        id=qdata.get("id", f"{chapter_id}-q{i:02d}"),
                        chapter_id=chapter_id,
                        question_text=qdata["question"],
                        correct_answer=str(qdata["answer"]),
                        question_type=qdata.get("type", "mcq"),
                        options=[str(o) for o in qdata.get("options", [])],
                        is_math=bool(qdata.get("is_math", False)),
                        math_steps=list(qdata.get("math_steps", [])),
                    )
                )
        except (KeyError, TypeError, ValueError) as e:
            raise CurriculumLoadError(f"Invalid chapter entry in {path}: {e}") from e
        chapters.append(chapter)

    logger.debug("curriculum_loaded", path=str(path), chapters=len(chapters))
    return chapters
