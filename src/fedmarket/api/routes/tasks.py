import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.engine import get_session
from fedmarket.db.models import TASK_STATUSES
from fedmarket.db.repositories import TaskRepository, UserRepository
from fedmarket.schemas.task import CreateTaskRequest, TaskResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


def _get_repo(session: AsyncSession = Depends(get_session)) -> TaskRepository:
    return TaskRepository(session)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    request: CreateTaskRequest,
    session: AsyncSession = Depends(get_session),
):
    creator = await UserRepository(session).get(request.creator_id)
    if not creator:
        raise HTTPException(status_code=400, detail="Creator not found")

    task = await TaskRepository(session).create(
        title=request.title,
        description=request.description,
        dataset_uri=request.dataset_uri,
        target_accuracy=request.target_accuracy,
        reward_pool=request.reward_pool,
        creator_id=request.creator_id,
        current_accuracy=0.0,
        status="PENDING",
    )
    logger.info("task_created", task_id=str(task.id), reward_pool=task.reward_pool)
    return task


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    status: str | None = None,
    creator_id: uuid.UUID | None = None,
    repo: TaskRepository = Depends(_get_repo),
):
    if status and status not in TASK_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
    return await repo.list_all(status=status, creator_id=creator_id)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    repo: TaskRepository = Depends(_get_repo),
):
    task = await repo.get(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
