import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateTaskRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    dataset_uri: str = Field(..., min_length=1, max_length=512)
    target_accuracy: float = Field(..., gt=0.0, le=1.0)
    reward_pool: float = Field(..., gt=0.0)
    creator_id: uuid.UUID


class TaskResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    title: str
    description: str
    dataset_uri: str
    target_accuracy: float
    current_accuracy: float
    reward_pool: float
    status: str
    creator_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
