"""Tests for the Glaze belief recursion and choice likelihood."""

import math

import numpy as np
import pytest

from glaze_task.belief_model import (
    belief_trajectory,
    choice_negative_log_likelihood,
    choice_probability_right,
    clamp_hazard_rate,
    position_to_llr,
    psi_function,
    score_hazard_rate,
    update_belief,
)
from glaze_task.constants import HAZARD_GRID


class TestLLR:
    def test_canonical_geometry(self) -> None:
        # mean 0.25, sd 0.24 * 0.5 = 0.12
        assert position_to_llr(0.3, 0.24) == pytest.approx(2 * 0.25 * 0.3 / 0.12**2)

    def test_sign_follows_side(self) -> None:
        llr = position_to_llr(np.array([-0.2, 0.0, 0.2]), 0.33)
        assert llr[0] < 0.0
        assert llr[1] == 0.0
        assert llr[2] == pytest.approx(-llr[0])

    def test_more_noise_means_weaker_evidence(self) -> None:
        assert position_to_llr(0.1, 0.41) < position_to_llr(0.1, 0.24)

    def test_invalid_sigma_rejected(self) -> None:
        with pytest.raises(ValueError):
            position_to_llr(0.1, 0.0)


class TestPsi:
    @pytest.mark.parametrize("H", [0.001, 0.05, 0.3, 0.5, 0.9, 0.999])
    def test_neutral_belief_stays_neutral(self, H: float) -> None:
        assert psi_function(0.0, H) == 0.0

    def test_neutral_for_whole_grid(self) -> None:
        assert np.all(psi_function(np.zeros(HAZARD_GRID.size), HAZARD_GRID) == 0.0)

    @pytest.mark.parametrize("L", [-7.0, -0.5, 0.3, 4.0])
    def test_half_hazard_erases_belief(self, L: float) -> None:
        assert psi_function(L, 0.5) == pytest.approx(0.0, abs=1e-12)

    @pytest.mark.parametrize("H", [0.05, 0.3, 0.7])
    def test_saturates_at_log_stability_ratio(self, H: float) -> None:
        bound = math.log((1 - H) / H)
        assert psi_function(1e4, H) == pytest.approx(bound)
        assert psi_function(-1e4, H) == pytest.approx(-bound)

    @pytest.mark.parametrize("L", [1e17, -1e17, 1e300])
    def test_huge_beliefs_do_not_cancel_to_zero(self, L: float) -> None:
        bound = math.log(0.95 / 0.05)
        assert psi_function(L, 0.05) == pytest.approx(math.copysign(bound, L))

    def test_saturation_is_elementwise(self) -> None:
        values = psi_function(np.array([1e17, 0.0, -1e17]), 0.3)
        bound = math.log(0.7 / 0.3)
        np.testing.assert_allclose(values, [bound, 0.0, -bound])

    def test_tiny_sigma_belief_saturates_after_neutral_sample(self) -> None:
        llr = position_to_llr(np.array([0.2, 0.0]), 1e-9)
        assert llr[0] > 1e17
        trajectory = belief_trajectory(llr, 0.05)
        assert trajectory[1] == pytest.approx(math.log(0.95 / 0.05))

    def test_low_hazard_keeps_more_belief_than_high_hazard(self) -> None:
        assert psi_function(2.0, 0.05) > psi_function(2.0, 0.3) > 0.0
        assert psi_function(2.0, 0.9) < 0.0

    def test_degenerate_hazards_are_clamped(self) -> None:
        for H in (0.0, 1.0):
            value = psi_function(3.0, H)
            assert math.isfinite(value)
        assert psi_function(3.0, 0.0) == pytest.approx(3.0, abs=1e-4)

    def test_clamp_hazard_rate(self) -> None:
        assert clamp_hazard_rate(0.0) == pytest.approx(1e-6)
        assert clamp_hazard_rate(1.0) == pytest.approx(1 - 1e-6)
        assert clamp_hazard_rate(0.3) == 0.3

    def test_update_adds_evidence(self) -> None:
        assert update_belief(1.5, 2.0, 0.2) == pytest.approx(psi_function(1.5, 0.2) + 2.0)


class TestBeliefTrajectory:
    def test_half_hazard_trajectory_equals_evidence(self) -> None:
        trajectory = belief_trajectory([1.0, -2.0, 0.5], 0.5)
        np.testing.assert_allclose(trajectory, [1.0, -2.0, 0.5], atol=1e-12)

    def test_matches_manual_recursion(self) -> None:
        llr = [0.8, 1.2, -3.0, 0.4]
        H = 0.2
        expected = []
        L = 0.0
        for value in llr:
            L = psi_function(L, H) + value
            expected.append(L)
        np.testing.assert_allclose(belief_trajectory(llr, H), expected)

    def test_empty_sequence(self) -> None:
        assert belief_trajectory([], 0.3).size == 0

    def test_trajectory_is_read_only(self) -> None:
        trajectory = belief_trajectory([1.0, 2.0], 0.1)
        with pytest.raises(ValueError):
            trajectory[0] = 5.0

    def test_non_finite_evidence_rejected(self) -> None:
        with pytest.raises(ValueError):
            belief_trajectory([1.0, float("nan")], 0.1)

    def test_extreme_evidence_stays_finite(self) -> None:
        trajectory = belief_trajectory([800.0, 800.0, -800.0], 0.01)
        assert np.isfinite(trajectory).all()


class TestChoiceLikelihood:
    def test_neutral_belief_costs_log_two_per_trial(self) -> None:
        nll = choice_negative_log_likelihood([0.0, 0.0], [1, 0])
        assert nll == pytest.approx(2 * math.log(2))

    def test_probability_readout(self) -> None:
        p = choice_probability_right([0.0, 2.0, -2.0])
        assert p[0] == pytest.approx(0.5)
        assert p[1] == pytest.approx(1 / (1 + math.exp(-2.0)))
        assert p[1] + p[2] == pytest.approx(1.0)

    def test_confident_wrong_choice_is_floored(self) -> None:
        nll = choice_negative_log_likelihood([1000.0], [0])
        assert nll == pytest.approx(-math.log(1e-10))

    def test_confident_right_choice_costs_nothing(self) -> None:
        assert choice_negative_log_likelihood([-1000.0], [0]) == pytest.approx(0.0, abs=1e-12)

    def test_empty_gives_nan(self) -> None:
        assert math.isnan(choice_negative_log_likelihood([], []))

    def test_length_mismatch_rejected(self) -> None:
        with pytest.raises(ValueError, match="index-aligned"):
            choice_negative_log_likelihood([0.1, 0.2], [1])

    def test_non_binary_choice_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            choice_negative_log_likelihood([0.1, 0.2], [1, 2])

    def test_score_hazard_rate_matches_components(self) -> None:
        llr = [1.0, -0.5, 2.0]
        choices = [1, 0, 1]
        expected = choice_negative_log_likelihood(belief_trajectory(llr, 0.3), choices)
        assert score_hazard_rate(llr, choices, 0.3) == pytest.approx(expected)

    def test_score_hazard_rate_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            score_hazard_rate([1.0, 2.0], [1], 0.3)
