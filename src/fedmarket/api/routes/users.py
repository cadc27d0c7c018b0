import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.engine import get_session
from fedmarket.db.repositories import UserRepository
from fedmarket.schemas.user import CreateUserRequest, UserResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def _get_repo(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    request: CreateUserRequest,
    repo: UserRepository = Depends(_get_repo),
):
    existing = await repo.find_by_email_or_wallet(request.email, request.wallet_address)
    if existing:
        raise HTTPException(
            status_code=409,
            detail="User with this email or wallet address already exists",
        )
    user = await repo.create(
        name=request.name,
        email=request.email,
        wallet_address=request.wallet_address,
    )
    logger.info("user_created", user_id=str(user.id))
    return user


@router.get("", response_model=list[UserResponse])
async def list_users(repo: UserRepository = Depends(_get_repo)):
    return await repo.list_all()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    repo: UserRepository = Depends(_get_repo),
):
    user = await repo.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
