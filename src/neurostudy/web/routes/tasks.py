"""Daily plan endpoints."""

from datetime import date

from fastapi import APIRouter, HTTPException, status

from neurostudy.core.daily_tasks import Task, TaskNotFoundError
from neurostudy.core.study_service import get_study_service
from neurostudy.web.schemas import (
    GenerateTasksRequest,
    MoveTaskRequest,
    TaskListResponse,
    TaskResponse,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _task_list(day: str, tasks: list[Task]) -> TaskListResponse:
    profile = get_study_service().profile()
    return TaskListResponse(
        date=day,
        tasks=[TaskResponse(**t.to_dict()) for t in tasks],
        count=len(tasks),
        max_tasks_today=profile.max_tasks_today,
    )


def _not_found(e: TaskNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/today", response_model=TaskListResponse)
async def today_tasks() -> TaskListResponse:
    """Today's plan, generated on first request of the day."""
    today = date.today().isoformat()
    return _task_list(today, get_study_service().today_tasks(today))


@router.post("/generate", response_model=TaskListResponse)
async def generate_tasks(request: GenerateTasksRequest) -> TaskListResponse:
    """Replace a day's plan with a freshly selected one."""
    day = request.date or date.today().isoformat()
    tasks = get_study_service().generate_tasks(today=day, seed=request.seed)
    return _task_list(day, tasks)


@router.post("/{task_id}/move", response_model=TaskListResponse)
async def move_task(task_id: str, request: MoveTaskRequest) -> TaskListResponse:
    service = get_study_service()
    try:
        tasks = service.move_task(task_id, request.direction)
    except TaskNotFoundError as e:
        raise _not_found(e) from e
    day = tasks[0].date if tasks else date.today().isoformat()
    return _task_list(day, tasks)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str) -> None:
    try:
        get_study_service().remove_task(task_id)
    except TaskNotFoundError as e:
        raise _not_found(e) from e


@router.post("/{task_id}/steps/complete", response_model=TaskResponse)
async def complete_step(task_id: str) -> TaskResponse:
    """Mark the task's current micro-step as done."""
    try:
        task = get_study_service().complete_micro_step(task_id)
    except TaskNotFoundError as e:
        raise _not_found(e) from e
    return TaskResponse(**task.to_dict())
