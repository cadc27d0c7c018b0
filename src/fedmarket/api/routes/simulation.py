import uuid

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.db.engine import get_session
from fedmarket.schemas.simulation import (
    SimulationRequest,
    SimulationResponse,
    SimulationStatusResponse,
)
from fedmarket.services.round_simulator import RoundSimulator, get_simulation_status
from fedmarket.services.task_lock import TaskLock

router = APIRouter(prefix="/api/v1/simulation", tags=["simulation"])

# Replaced with a redis-backed lock by the app entrypoint
_task_lock = TaskLock()


def set_redis(redis: Redis) -> None:
    global _task_lock
    _task_lock = TaskLock(redis)


def _get_simulator(session: AsyncSession = Depends(get_session)) -> RoundSimulator:
    return RoundSimulator(session, task_lock=_task_lock)


@router.post("", response_model=SimulationResponse)
async def run_simulation(
    request: SimulationRequest,
    simulator: RoundSimulator = Depends(_get_simulator),
):
    outcome = await simulator.simulate(
        request.task_id, request.contributor_id, rounds=request.rounds
    )
    return SimulationResponse.model_validate(outcome, from_attributes=True)


@router.get("/{task_id}", response_model=SimulationStatusResponse)
async def simulation_status(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    status = await get_simulation_status(session, task_id)
    return SimulationStatusResponse.model_validate(status, from_attributes=True)
