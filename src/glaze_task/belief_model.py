from __future__ import annotations

from typing import Sequence

import numpy as np

from .constants import (
    BELIEF_SATURATION,
    CHOICE_BETA,
    HAZARD_CLAMP_EPS,
    LIKELIHOOD_EPS,
    SOURCE_DISTANCE,
)
from .data_validation import (
    _as_choice_vector,
    _as_float_vector,
    _validate_aligned_lengths,
    _validate_positive_float,
)
from .records import _read_only


def clamp_hazard_rate(H: float | np.ndarray) -> float | np.ndarray:
    """Clamp hazard rates into the open interval the model is defined on."""
    clipped = np.clip(H, HAZARD_CLAMP_EPS, 1.0 - HAZARD_CLAMP_EPS)
    if np.ndim(clipped) == 0:
        return float(clipped)
    return clipped


def position_to_llr(
    positions: float | np.ndarray | Sequence[float],
    sigma_ratio: float,
    distance: float = SOURCE_DISTANCE,
) -> float | np.ndarray:
    """
    Converts centered horizontal positions into log-likelihood ratios.

    For two equal-variance Gaussians centered at +/- distance/2,
    LLR(x) = 2 * mean * x / variance, positive values favouring the right source.

    Args:
        positions: Observation minus the screen center (x - 0.5).
        sigma_ratio (float): Noise standard deviation relative to `distance`.
        distance (float): Separation between the two source centers.

    Returns:
        LLR values with the same shape as `positions`.
    """
    ratio = _validate_positive_float(sigma_ratio, name="sigma_ratio")
    span = _validate_positive_float(distance, name="distance")
    mean_position = span / 2.0
    variance = (ratio * span) ** 2
    llr = (2.0 * mean_position * np.asarray(positions, dtype=float)) / variance
    if np.ndim(llr) == 0:
        return float(llr)
    return llr


def psi_function(L_prev, H):
    """
    Calculates the prior expectation (Psi) for the Glaze model.

    This function distorts the previous belief based on the hazard rate H,
    representing the probability that the state has switched since the last trial.
    See Glaze et al. (2015) Eq 2.

    Both terms are evaluated with `logaddexp`. Beliefs beyond
    `BELIEF_SATURATION` return +/- log((1 - H) / H) directly, since
    `L + term_pos - term_neg` cancels to zero once |L| swamps the log term.
    Inputs broadcast.

    Args:
        L_prev (float or np.ndarray): The belief (log-posterior odds) from the previous time step.
        H (float or np.ndarray): The hazard rate (probability of state switch).

    Returns:
        float or np.ndarray: The prior expectation for the current time step.
    """
    h = np.clip(H, HAZARD_CLAMP_EPS, 1.0 - HAZARD_CLAMP_EPS)
    L = np.asarray(L_prev, dtype=float)

    log_stability = np.log((1.0 - h) / h)
    term_pos = np.logaddexp(log_stability, -L)
    term_neg = np.logaddexp(log_stability, L)

    expectation = np.where(
        np.abs(L) > BELIEF_SATURATION,
        np.sign(L) * log_stability,
        L + term_pos - term_neg,
    )
    if np.ndim(expectation) == 0:
        return float(expectation)
    return expectation


def update_belief(L_prev, llr, H):
    """Glaze Eq 1: posterior belief is the prior expectation plus new evidence."""
    return psi_function(L_prev, H) + llr


def _belief_trajectories(llr_values: np.ndarray, hazard_rates: np.ndarray) -> np.ndarray:
    """Run the belief recursion for several hazard rates at once.

    Returns an array of shape `(len(hazard_rates), len(llr_values))`.
    """
    h = np.clip(np.asarray(hazard_rates, dtype=float), HAZARD_CLAMP_EPS, 1.0 - HAZARD_CLAMP_EPS)
    trajectories = np.zeros((h.size, llr_values.size), dtype=float)

    current_L = np.zeros(h.size, dtype=float)
    for t, llr in enumerate(llr_values):
        current_L = update_belief(current_L, llr, h)
        trajectories[:, t] = current_L
    return trajectories


def belief_trajectory(
    llr_values: np.ndarray | Sequence[float],
    hazard_rate: float,
) -> np.ndarray:
    """Belief (log-posterior odds) after each observation, starting from L = 0."""
    llr_vector = _as_float_vector(llr_values, name="llr_values")
    trajectory = _belief_trajectories(llr_vector, np.asarray([hazard_rate], dtype=float))[0]
    return _read_only(trajectory)


def choice_probability_right(trajectory: np.ndarray | Sequence[float], beta: float = CHOICE_BETA) -> np.ndarray:
    """Logistic readout P(choice = right | L)."""
    beliefs = np.asarray(trajectory, dtype=float)
    clipped = np.clip(float(beta) * beliefs, -60.0, 60.0)
    return 1.0 / (1.0 + np.exp(-clipped))


def _choice_nll_matrix(
    trajectories: np.ndarray,
    choices: np.ndarray,
    *,
    beta: float,
    eps: float,
) -> np.ndarray:
    """Summed choice NLL for each row of a `(n_candidates, n_trials)` belief matrix."""
    prob_right = choice_probability_right(trajectories, beta=beta)
    prob_left = 1.0 - prob_right
    likelihood = np.where(choices[np.newaxis, :] == 1, prob_right, prob_left)
    return -np.log(np.maximum(likelihood, eps)).sum(axis=1)


def choice_negative_log_likelihood(
    trajectory: np.ndarray | Sequence[float],
    choices: np.ndarray | Sequence[int],
    *,
    beta: float = CHOICE_BETA,
    eps: float = LIKELIHOOD_EPS,
) -> float:
    """Negative log-likelihood of observed choices under a belief trajectory.

    Returns NaN for empty input.
    """
    if eps <= 0:
        raise ValueError("eps must be > 0")
    beliefs = _as_float_vector(trajectory, name="trajectory")
    choice_vector = _as_choice_vector(choices)
    _validate_aligned_lengths(
        beliefs, choice_vector, first_name="trajectory", second_name="choices"
    )
    if beliefs.size == 0:
        return float("nan")

    nll = _choice_nll_matrix(beliefs[np.newaxis, :], choice_vector, beta=float(beta), eps=float(eps))
    return float(nll[0])


def score_hazard_rate(
    llr_values: np.ndarray | Sequence[float],
    choices: np.ndarray | Sequence[int],
    hazard_rate: float,
    *,
    beta: float = CHOICE_BETA,
    eps: float = LIKELIHOOD_EPS,
) -> float:
    """Choice NLL of one hazard-rate hypothesis; lower is better."""
    llr_vector = _as_float_vector(llr_values, name="llr_values")
    choice_vector = _as_choice_vector(choices)
    _validate_aligned_lengths(
        llr_vector, choice_vector, first_name="llr_values", second_name="choices"
    )
    trajectory = belief_trajectory(llr_vector, hazard_rate)
    return choice_negative_log_likelihood(trajectory, choice_vector, beta=beta, eps=eps)
