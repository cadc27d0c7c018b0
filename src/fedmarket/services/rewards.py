"""Reward and accuracy rules shared by simulated and externally submitted contributions."""

BASIS_POINTS = 10_000
# 10% of the reward pool per 100% of accuracy improvement
REWARD_RATE = 0.1
# Accuracy never reaches a "perfect" 100% model
ACCURACY_CAP = 0.999


def compute_reward(improvement: float, reward_pool: float) -> float:
    """Reward for an accuracy improvement given as a fraction (0.02 == 2%)."""
    return improvement * reward_pool * REWARD_RATE


def to_basis_points(improvement: float) -> float:
    return improvement * BASIS_POINTS


def from_basis_points(improvement_bp: float) -> float:
    return improvement_bp / BASIS_POINTS


def next_accuracy(current: float, improvement: float) -> float:
    capped = min(current + improvement, ACCURACY_CAP)
    # a task seeded above the cap must not move backwards
    return max(current, capped)


def task_status_for(accuracy: float, target_accuracy: float) -> str:
    return "COMPLETED" if accuracy >= target_accuracy else "ACTIVE"
