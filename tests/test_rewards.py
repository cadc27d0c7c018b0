"""Tests for the shared reward and accuracy rules."""

import pytest

from fedmarket.services.rewards import (
    ACCURACY_CAP,
    compute_reward,
    from_basis_points,
    next_accuracy,
    task_status_for,
    to_basis_points,
)


class TestComputeReward:
    def test_two_percent_of_5000_pool(self):
        assert compute_reward(0.02, 5000) == pytest.approx(10.0)

    def test_formula_is_exact(self):
        improvement, pool = 0.0137, 1234.5
        assert compute_reward(improvement, pool) == improvement * pool * 0.1

    def test_zero_pool_pays_nothing(self):
        assert compute_reward(0.03, 0) == 0

    def test_basis_points_path_matches_fraction(self):
        assert compute_reward(from_basis_points(200), 5000) == pytest.approx(
            compute_reward(0.02, 5000)
        )


class TestBasisPoints:
    def test_conversion(self):
        assert to_basis_points(0.005) == pytest.approx(50)
        assert to_basis_points(0.03) == pytest.approx(300)
        assert from_basis_points(10000) == 1.0


class TestNextAccuracy:
    def test_adds_improvement(self):
        assert next_accuracy(0.5, 0.02) == pytest.approx(0.52)

    def test_caps_below_one(self):
        assert next_accuracy(0.99, 0.03) == ACCURACY_CAP

    def test_never_decreases_above_cap(self):
        assert next_accuracy(1.0, 0.01) == 1.0


class TestTaskStatus:
    def test_completed_at_target(self):
        assert task_status_for(0.9, 0.9) == "COMPLETED"

    def test_active_below_target(self):
        assert task_status_for(0.89, 0.9) == "ACTIVE"
