import time
import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.engine import get_session
from fedmarket.db.repositories import ModelNftRepository, TaskRepository, UserRepository
from fedmarket.schemas.model_nft import MintModelRequest, ModelNftResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/models", tags=["models"])


def _get_repo(session: AsyncSession = Depends(get_session)) -> ModelNftRepository:
    return ModelNftRepository(session)


def _token_id() -> str:
    # Stand-in for an on-chain token id
    return f"token_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@router.post("", response_model=ModelNftResponse, status_code=201)
async def mint_model(
    request: MintModelRequest,
    session: AsyncSession = Depends(get_session),
):
    if not await TaskRepository(session).get(request.task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    users = UserRepository(session)
    if not await users.get(request.creator_id):
        raise HTTPException(status_code=400, detail="Creator not found")
    for share in request.contributor_shares:
        if not await users.get(share.contributor_id):
            raise HTTPException(
                status_code=400, detail=f"Contributor {share.contributor_id} not found"
            )

    model_nft = await ModelNftRepository(session).create(
        shares=[(s.contributor_id, s.share_percentage) for s in request.contributor_shares],
        token_id=_token_id(),
        task_id=request.task_id,
        name=request.name,
        description=request.description,
        model_type=request.model_type,
        accuracy=request.accuracy,
        training_rounds=request.training_rounds,
        ipfs_uri=request.ipfs_uri,
        metadata_uri=request.metadata_uri,
        creator_id=request.creator_id,
        current_owner_id=request.creator_id,
    )
    logger.info(
        "model_nft_minted",
        model_nft_id=str(model_nft.id),
        token_id=model_nft.token_id,
        shares=len(request.contributor_shares),
    )
    return model_nft


@router.get("", response_model=list[ModelNftResponse])
async def list_models(
    task_id: uuid.UUID | None = None,
    creator_id: uuid.UUID | None = None,
    current_owner_id: uuid.UUID | None = None,
    repo: ModelNftRepository = Depends(_get_repo),
):
    return await repo.list_all(
        task_id=task_id, creator_id=creator_id, current_owner_id=current_owner_id
    )


@router.get("/{model_nft_id}", response_model=ModelNftResponse)
async def get_model(
    model_nft_id: uuid.UUID,
    repo: ModelNftRepository = Depends(_get_repo),
):
    model_nft = await repo.get(model_nft_id)
    if not model_nft:
        raise HTTPException(status_code=404, detail="Model NFT not found")
    return model_nft
