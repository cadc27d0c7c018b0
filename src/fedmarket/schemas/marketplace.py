import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from fedmarket.schemas.model_nft import ModelNftResponse


class CreateListingRequest(BaseModel):
    model_config = {"protected_namespaces": ()}

    model_nft_id: uuid.UUID
    seller_id: uuid.UUID
    price: float = Field(..., gt=0.0)


class ListingResponse(BaseModel):
    model_config = {"from_attributes": True, "protected_namespaces": ()}

    id: uuid.UUID
    model_nft_id: uuid.UUID
    seller_id: uuid.UUID
    price: float
    status: str
    created_at: datetime
    model_nft: ModelNftResponse
