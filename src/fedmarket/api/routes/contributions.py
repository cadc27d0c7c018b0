import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.engine import get_session
from fedmarket.db.repositories import ContributionRepository, TaskRepository, UserRepository
from fedmarket.errors import ConflictError
from fedmarket.schemas.contribution import ContributionResponse, CreateContributionRequest
from fedmarket.services.rewards import compute_reward, from_basis_points

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/contributions", tags=["contributions"])


def _get_repo(session: AsyncSession = Depends(get_session)) -> ContributionRepository:
    return ContributionRepository(session)


@router.post("", response_model=ContributionResponse, status_code=201)
async def create_contribution(
    request: CreateContributionRequest,
    session: AsyncSession = Depends(get_session),
):
    task = await TaskRepository(session).get(request.task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    if not await UserRepository(session).get(request.contributor_id):
        raise HTTPException(status_code=404, detail="Contributor not found")

    repo = ContributionRepository(session)
    latest = await repo.get_latest(request.task_id, request.contributor_id)
    last_round = latest.round_number if latest else 0
    round_number = request.round_number or last_round + 1
    if round_number <= last_round:
        raise HTTPException(
            status_code=409,
            detail=f"Round {round_number} already submitted; next round is {last_round + 1}",
        )

    # Submitted contributions wait for approval; task accuracy is untouched here
    reward = compute_reward(from_basis_points(request.improvement_bp), task.reward_pool)
    try:
        contribution = await repo.create(
            task_id=request.task_id,
            contributor_id=request.contributor_id,
            round_number=round_number,
            improvement_bp=request.improvement_bp,
            model_update_uri=request.model_update_uri,
            reward_amount=reward,
            status="PENDING",
        )
    except IntegrityError:
        # a concurrent simulation or submission took this round first
        await session.rollback()
        raise ConflictError(f"Round {round_number} already submitted")

    logger.info(
        "contribution_submitted",
        contribution_id=str(contribution.id),
        task_id=str(request.task_id),
        round=round_number,
    )
    return contribution


@router.get("", response_model=list[ContributionResponse])
async def list_contributions(
    task_id: uuid.UUID | None = None,
    contributor_id: uuid.UUID | None = None,
    repo: ContributionRepository = Depends(_get_repo),
):
    return await repo.list_all(task_id=task_id, contributor_id=contributor_id)
