"""Round-based reward accrual: advances a task's accuracy one contribution round at a time."""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import numpy as np
import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fedmarket.config import settings
from fedmarket.db.models import Task
from fedmarket.db.repositories import (
    ContributionRepository,
    TaskRepository,
    TrainingRoundRepository,
    UserRepository,
)
from fedmarket.errors import ConflictError, NotFoundError, ValidationError
from fedmarket.observability.metrics import (
    REWARDS_PAID_TOTAL,
    SIMULATION_DURATION,
    SIMULATION_ROUNDS_TOTAL,
    SIMULATIONS_ACTIVE,
    TASKS_COMPLETED_TOTAL,
)
from fedmarket.services.rewards import (
    compute_reward,
    next_accuracy,
    task_status_for,
    to_basis_points,
)
from fedmarket.services.task_lock import TaskLock

logger = structlog.get_logger()

IMPROVEMENT_MIN = 0.005
IMPROVEMENT_MAX = 0.03
# Only one simulated contributor takes part in each round
PARTICIPANTS_PER_ROUND = 1


@dataclass
class RoundResult:
    round: int
    improvement: float
    new_accuracy: float
    reward_amount: float
    model_update_uri: str
    contribution_id: uuid.UUID


@dataclass
class SimulationOutcome:
    task_id: uuid.UUID
    contributor_id: uuid.UUID
    results: list[RoundResult] = field(default_factory=list)
    final_accuracy: float = 0.0
    target_reached: bool = False


@dataclass
class SimulationStatus:
    task: Task
    current_accuracy: float
    target_accuracy: float
    progress: float
    rounds_completed: int
    total_contributions: int
    rounds: list = field(default_factory=list)


def _model_update_uri(round_number: int) -> str:
    return f"ipfs://QmMock{round_number}{int(time.time() * 1000)}"


class RoundSimulator:
    def __init__(
        self,
        session: AsyncSession,
        task_lock: TaskLock | None = None,
        rng: np.random.Generator | None = None,
        round_delay: tuple[float, float] | None = None,
    ) -> None:
        self.session = session
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)
        self.contributions = ContributionRepository(session)
        self.training_rounds = TrainingRoundRepository(session)
        self.task_lock = task_lock or TaskLock()
        self.rng = rng if rng is not None else np.random.default_rng()
        if round_delay is None:
            round_delay = (settings.round_delay_min_seconds, settings.round_delay_max_seconds)
        self.round_delay = round_delay

    async def simulate(
        self,
        task_id: uuid.UUID,
        contributor_id: uuid.UUID,
        rounds: int | None = None,
    ) -> SimulationOutcome:
        if rounds is None:
            rounds = settings.simulation_default_rounds
        if rounds < 1 or rounds > settings.simulation_max_rounds:
            raise ValidationError(
                f"rounds must be between 1 and {settings.simulation_max_rounds}"
            )

        task = await self.tasks.get(task_id)
        if not task:
            raise NotFoundError("Task not found")
        if task.status == "CANCELLED":
            raise ValidationError("Task is CANCELLED, cannot simulate")
        if not await self.users.get(contributor_id):
            raise NotFoundError("Contributor not found")

        async with self.task_lock.hold(task_id):
            # another caller may have advanced the task before we got the lock
            await self.session.refresh(task)
            SIMULATIONS_ACTIVE.inc()
            started = time.perf_counter()
            try:
                outcome = await self._run_rounds(task, contributor_id, rounds)
            finally:
                SIMULATIONS_ACTIVE.dec()
                SIMULATION_DURATION.observe(time.perf_counter() - started)

        logger.info(
            "simulation_completed",
            task_id=str(task_id),
            contributor_id=str(contributor_id),
            rounds=len(outcome.results),
            final_accuracy=round(outcome.final_accuracy, 4),
            target_reached=outcome.target_reached,
        )
        return outcome

    async def _run_rounds(
        self, task: Task, contributor_id: uuid.UUID, rounds: int
    ) -> SimulationOutcome:
        latest = await self.contributions.get_latest(task.id, contributor_id)
        start_round = latest.round_number + 1 if latest else 1

        outcome = SimulationOutcome(task_id=task.id, contributor_id=contributor_id)
        logger.info(
            "simulation_starting",
            task_id=str(task.id),
            contributor_id=str(contributor_id),
            start_round=start_round,
            rounds=rounds,
        )

        for round_number in range(start_round, start_round + rounds):
            delay = self._draw_delay()
            if delay > 0:
                await asyncio.sleep(delay)

            improvement = float(self.rng.uniform(IMPROVEMENT_MIN, IMPROVEMENT_MAX))
            result = await self._commit_round(task, contributor_id, round_number, improvement)
            outcome.results.append(result)

            if task.current_accuracy >= task.target_accuracy:
                TASKS_COMPLETED_TOTAL.inc()
                logger.info(
                    "task_target_reached",
                    task_id=str(task.id),
                    round=round_number,
                    accuracy=round(task.current_accuracy, 4),
                )
                break

        outcome.final_accuracy = task.current_accuracy
        outcome.target_reached = task.current_accuracy >= task.target_accuracy
        return outcome

    async def _commit_round(
        self,
        task: Task,
        contributor_id: uuid.UUID,
        round_number: int,
        improvement: float,
    ) -> RoundResult:
        """Write the contribution, task progress and training round as one transaction."""
        task_id = task.id
        reward = compute_reward(improvement, task.reward_pool)
        improvement_bp = to_basis_points(improvement)
        new_accuracy = next_accuracy(task.current_accuracy, improvement)
        model_update_uri = _model_update_uri(round_number)

        try:
            contribution = await self.contributions.add(
                task_id=task.id,
                contributor_id=contributor_id,
                round_number=round_number,
                improvement_bp=improvement_bp,
                model_update_uri=model_update_uri,
                reward_amount=reward,
                status="APPROVED",
            )
            self.tasks.stage_update(
                task,
                current_accuracy=new_accuracy,
                status=task_status_for(new_accuracy, task.target_accuracy),
            )
            await self.training_rounds.add(
                task_id=task.id,
                round_number=round_number,
                global_accuracy=new_accuracy,
                participant_count=PARTICIPANTS_PER_ROUND,
                status="COMPLETED",
                completed_at=datetime.now(timezone.utc),
            )
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.warning(
                "simulation_round_conflict", task_id=str(task_id), round=round_number
            )
            raise ConflictError(
                f"Round {round_number} was recorded concurrently for this contributor"
            ) from exc
        except Exception:
            # earlier rounds stay committed; only this round is discarded
            await self.session.rollback()
            logger.exception(
                "simulation_round_failed", task_id=str(task_id), round=round_number
            )
            raise

        SIMULATION_ROUNDS_TOTAL.inc()
        REWARDS_PAID_TOTAL.inc(reward)
        logger.info(
            "simulation_round_completed",
            task_id=str(task.id),
            round=round_number,
            improvement_bp=round(improvement_bp, 2),
            accuracy=round(new_accuracy, 4),
            reward=round(reward, 4),
        )
        return RoundResult(
            round=round_number,
            improvement=improvement_bp,
            new_accuracy=new_accuracy,
            reward_amount=reward,
            model_update_uri=model_update_uri,
            contribution_id=contribution.id,
        )

    def _draw_delay(self) -> float:
        low, high = self.round_delay
        if high <= 0:
            return 0.0
        return float(self.rng.uniform(low, high))


async def get_simulation_status(session: AsyncSession, task_id: uuid.UUID) -> SimulationStatus:
    task = await TaskRepository(session).get(task_id)
    if not task:
        raise NotFoundError("Task not found")
    rounds = await TrainingRoundRepository(session).list_for_task(task_id)
    contributions = await ContributionRepository(session).list_all(task_id=task_id)
    return SimulationStatus(
        task=task,
        current_accuracy=task.current_accuracy,
        target_accuracy=task.target_accuracy,
        progress=task.current_accuracy / task.target_accuracy * 100,
        rounds_completed=len(rounds),
        total_contributions=len(contributions),
        rounds=rounds,
    )
