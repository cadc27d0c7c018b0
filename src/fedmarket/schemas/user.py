import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    wallet_address: str = Field(..., min_length=1, max_length=64)


class UserResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    email: str
    wallet_address: str
    reputation_score: float
    total_earnings: float
    created_at: datetime
