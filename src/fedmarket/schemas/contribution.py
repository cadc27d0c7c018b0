import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateContributionRequest(BaseModel):
    model_config = {"protected_namespaces": ()}

    task_id: uuid.UUID
    contributor_id: uuid.UUID
    # Defaults to the contributor's next round for the task
    round_number: int | None = Field(None, ge=1)
    improvement_bp: float = Field(..., gt=0.0, le=10000.0)
    model_update_uri: str = Field(..., min_length=1, max_length=512)


class ContributionResponse(BaseModel):
    model_config = {"from_attributes": True, "protected_namespaces": ()}

    id: uuid.UUID
    task_id: uuid.UUID
    contributor_id: uuid.UUID
    round_number: int
    improvement_bp: float
    model_update_uri: str
    reward_amount: float
    status: str
    created_at: datetime
