import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from fedmarket.schemas.task import TaskResponse


class SimulationRequest(BaseModel):
    task_id: uuid.UUID
    contributor_id: uuid.UUID
    rounds: int | None = Field(None, ge=1)


class RoundResultResponse(BaseModel):
    model_config = {"from_attributes": True, "protected_namespaces": ()}

    round: int
    improvement: float
    new_accuracy: float
    reward_amount: float
    model_update_uri: str
    contribution_id: uuid.UUID


class SimulationResponse(BaseModel):
    model_config = {"from_attributes": True}

    task_id: uuid.UUID
    contributor_id: uuid.UUID
    results: list[RoundResultResponse]
    final_accuracy: float
    target_reached: bool


class TrainingRoundResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    round_number: int
    global_accuracy: float
    participant_count: int
    status: str
    completed_at: datetime | None = None


class SimulationStatusResponse(BaseModel):
    model_config = {"from_attributes": True}

    task: TaskResponse
    current_accuracy: float
    target_accuracy: float
    progress: float
    rounds_completed: int
    total_contributions: int
    rounds: list[TrainingRoundResponse]
