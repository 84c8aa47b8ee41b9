"""Curriculum endpoints (read-only)."""

from fastapi import APIRouter, HTTPException, status

from neurostudy.db.curriculum_repository import get_chapter, list_chapters
from neurostudy.web.schemas import (
    ChapterListResponse,
    ChapterResponse,
    QuestionResponse,
)

router = APIRouter(prefix="/api/chapters", tags=["chapters"])


@router.get("", response_model=ChapterListResponse)
async def get_chapters(
    subject: str | None = None,
    board: str | None = None,
    grade: int | None = None,
) -> ChapterListResponse:
    """List chapters, optionally filtered by subject, board and grade."""
    chapters = list_chapters(subject=subject, board=board, grade=grade)
    return ChapterListResponse(
        chapters=[ChapterResponse(**c.to_dict()) for c in chapters],
        count=len(chapters),
    )


@router.get("/{chapter_id}", response_model=ChapterResponse)
async def get_chapter_detail(chapter_id: str) -> ChapterResponse:
    """Chapter with its practice questions."""
    chapter = get_chapter(chapter_id)
    if chapter is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Chapter '{chapter_id}' not found",
        )
    return ChapterResponse(
        **chapter.to_dict(),
        questions=[QuestionResponse(**q.to_dict()) for q in chapter.questions],
    )
