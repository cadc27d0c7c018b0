from fastapi import APIRouter

from fedmarket.schemas.training import TrainingConfigRequest, TrainingResultResponse
from fedmarket.services.curve_synthesizer import (
    TrainingConfig,
    run_synthesis,
    training_catalog,
)

router = APIRouter(prefix="/api/v1/train", tags=["train"])


@router.post("", response_model=TrainingResultResponse)
async def train_model(request: TrainingConfigRequest):
    config = TrainingConfig.from_request(request.model_dump(exclude_none=True))
    result = await run_synthesis(config)
    return TrainingResultResponse.model_validate(result, from_attributes=True)


@router.get("/catalog")
async def get_catalog():
    return training_catalog()
