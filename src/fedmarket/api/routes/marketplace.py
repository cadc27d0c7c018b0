import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.engine import get_session
from fedmarket.db.models import LISTING_STATUSES
from fedmarket.db.repositories import MarketplaceListingRepository, ModelNftRepository
from fedmarket.schemas.marketplace import CreateListingRequest, ListingResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/marketplace", tags=["marketplace"])


def _get_repo(session: AsyncSession = Depends(get_session)) -> MarketplaceListingRepository:
    return MarketplaceListingRepository(session)


@router.post("", response_model=ListingResponse, status_code=201)
async def create_listing(
    request: CreateListingRequest,
    session: AsyncSession = Depends(get_session),
):
    model_nft = await ModelNftRepository(session).get(request.model_nft_id)
    if not model_nft:
        raise HTTPException(status_code=404, detail="Model NFT not found")
    if model_nft.current_owner_id != request.seller_id:
        raise HTTPException(status_code=403, detail="You are not the owner of this model NFT")
    if model_nft.is_listed:
        raise HTTPException(status_code=409, detail="Model NFT is already listed")

    listing = await MarketplaceListingRepository(session).create(
        model_nft, seller_id=request.seller_id, price=request.price
    )
    logger.info(
        "listing_created",
        listing_id=str(listing.id),
        model_nft_id=str(model_nft.id),
        price=listing.price,
    )
    return listing


@router.get("", response_model=list[ListingResponse])
async def list_listings(
    status: str | None = None,
    seller_id: uuid.UUID | None = None,
    repo: MarketplaceListingRepository = Depends(_get_repo),
):
    if status and status not in LISTING_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
    return await repo.list_all(status=status, seller_id=seller_id)
