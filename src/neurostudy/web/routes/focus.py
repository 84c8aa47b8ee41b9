"""Focus session and progress endpoints."""

from fastapi import APIRouter, HTTPException, status

from neurostudy.core.daily_tasks import TaskNotFoundError
from neurostudy.core.focus_session import EndReason, SessionAlreadyEndedError
from neurostudy.core.study_service import FocusSessionNotFoundError, get_study_service
from neurostudy.web.schemas import (
    FocusEndRequest,
    FocusEndResponse,
    FocusSessionResponse,
    FocusStartRequest,
    ProgressResponse,
)

router = APIRouter(prefix="/api", tags=["focus"])


@router.post(
    "/focus-sessions",
    response_model=FocusSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(request: FocusStartRequest) -> FocusSessionResponse:
    """Start the timer for a task (or a quick session)."""
    try:
        session = get_study_service().start_session(
            task_id=request.task_id,
            planned_duration=request.planned_duration,
        )
    except TaskNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(e)
        ) from e
    return FocusSessionResponse(**session.to_dict())


@router.post("/focus-sessions/{session_id}/end", response_model=FocusEndResponse)
async def end_session(session_id: str, request: FocusEndRequest) -> FocusEndResponse:
    """Finalise a session. A session can only be ended once."""
    try:
        session, new_badges = get_study_service().end_session(
            session_id,
            completed=request.completed,
            reason=EndReason(request.reason),
        )
    except FocusSessionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(e)
        ) from e
    except SessionAlreadyEndedError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(e)
        ) from e

    return FocusEndResponse(
        session=FocusSessionResponse(**session.to_dict()),
        new_badges=new_badges,
    )


@router.get("/progress", response_model=ProgressResponse)
async def get_progress() -> ProgressResponse:
    return ProgressResponse(**get_study_service().progress().to_dict())
