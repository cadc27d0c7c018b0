import uuid
from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class ContributorShareRequest(BaseModel):
    contributor_id: uuid.UUID
    share_percentage: float = Field(..., gt=0.0, le=100.0)


class MintModelRequest(BaseModel):
    model_config = {"protected_namespaces": ()}

    task_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    model_type: str = Field(..., min_length=1, max_length=50)
    accuracy: float = Field(..., gt=0.0, le=1.0)
    training_rounds: int = Field(..., ge=1)
    ipfs_uri: str = Field(..., min_length=1, max_length=512)
    metadata_uri: str = Field(..., min_length=1, max_length=512)
    creator_id: uuid.UUID
    contributor_shares: list[ContributorShareRequest] = Field(default_factory=list)

    @model_validator(mode="after")
    def _shares_fit(self) -> "MintModelRequest":
        if sum(s.share_percentage for s in self.contributor_shares) > 100.0:
            raise ValueError("contributor shares exceed 100%")
        return self


class ContributorShareResponse(BaseModel):
    model_config = {"from_attributes": True}

    contributor_id: uuid.UUID
    share_percentage: float


class ModelNftResponse(BaseModel):
    model_config = {"from_attributes": True, "protected_namespaces": ()}

    id: uuid.UUID
    token_id: str
    task_id: uuid.UUID
    name: str
    description: str
    model_type: str
    accuracy: float
    training_rounds: int
    ipfs_uri: str
    metadata_uri: str
    creator_id: uuid.UUID
    current_owner_id: uuid.UUID
    is_listed: bool
    price: float | None = None
    created_at: datetime
    contributor_shares: list[ContributorShareResponse]
