from __future__ import annotations

import warnings
from typing import Sequence

import numpy as np
import pandas as pd

from .belief_model import _belief_trajectories, _choice_nll_matrix, position_to_llr
from .constants import CHOICE_BETA, HAZARD_GRID, LIKELIHOOD_EPS
from .data_validation import _as_choice_vector, _as_float_vector, _validate_aligned_lengths
from .records import FitResult, _read_only


def _prepare_fit_inputs(
    llr_values: np.ndarray | Sequence[float],
    choices: np.ndarray | Sequence[int],
    hazard_grid: np.ndarray | Sequence[float] | None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    llr_vector = _as_float_vector(llr_values, name="llr_values")
    choice_vector = _as_choice_vector(choices)
    _validate_aligned_lengths(
        llr_vector, choice_vector, first_name="llr_values", second_name="choices"
    )
    grid = HAZARD_GRID if hazard_grid is None else _as_float_vector(hazard_grid, name="hazard_grid")
    if grid.size == 0:
        raise ValueError("hazard_grid must not be empty.")
    return llr_vector, choice_vector, np.asarray(grid, dtype=float)


def _score_hazard_grid(
    llr_vector: np.ndarray,
    choice_vector: np.ndarray,
    grid: np.ndarray,
    *,
    beta: float,
    eps: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Return belief trajectories and choice NLL for every grid candidate."""
    trajectories = _belief_trajectories(llr_vector, grid)
    nll = _choice_nll_matrix(trajectories, choice_vector, beta=beta, eps=eps)
    return trajectories, nll


def hazard_likelihood_profile(
    llr_values: np.ndarray | Sequence[float],
    choices: np.ndarray | Sequence[int],
    hazard_grid: np.ndarray | Sequence[float] | None = None,
    *,
    beta: float = CHOICE_BETA,
    eps: float = LIKELIHOOD_EPS,
) -> pd.DataFrame:
    """Choice NLL for every hazard rate on the grid."""
    llr_vector, choice_vector, grid = _prepare_fit_inputs(llr_values, choices, hazard_grid)
    if llr_vector.size == 0:
        nll = np.full(grid.size, np.nan)
    else:
        _, nll = _score_hazard_grid(llr_vector, choice_vector, grid, beta=beta, eps=eps)
    return pd.DataFrame({"hazard_rate": grid, "negative_log_likelihood": nll})


def fit_hazard_rate(
    llr_values: np.ndarray | Sequence[float],
    choices: np.ndarray | Sequence[int],
    hazard_grid: np.ndarray | Sequence[float] | None = None,
    *,
    beta: float = CHOICE_BETA,
    eps: float = LIKELIHOOD_EPS,
) -> FitResult:
    """
    Fits the subjective hazard rate by exhaustive grid search.

    Every candidate on the grid is scored with the choice negative
    log-likelihood of its full belief trajectory. The lowest score wins and
    ties go to the candidate that comes first on the grid. There is no early
    stopping: the likelihood surface is not guaranteed to be unimodal.

    Args:
        llr_values: Per-trial log-likelihood ratios of the observations.
        choices: Per-trial choices, 0 = left and 1 = right.
        hazard_grid: Candidate hazard rates. Defaults to 0.001, 0.011, ..., 0.991.
        beta (float): Inverse temperature of the logistic choice readout.
        eps (float): Floor applied to choice probabilities before the log.

    Returns:
        FitResult: Best hazard rate, its trajectory and its score. An empty
        sequence gives NaN rate and score with an empty trajectory.
    """
    if eps <= 0:
        raise ValueError("eps must be > 0")
    llr_vector, choice_vector, grid = _prepare_fit_inputs(llr_values, choices, hazard_grid)

    if llr_vector.size == 0:
        warnings.warn(
            "Cannot fit a hazard rate to an empty choice sequence; returning NaN.",
            RuntimeWarning,
            stacklevel=2,
        )
        return FitResult(
            fitted_hazard_rate=float("nan"),
            trajectory=_read_only(np.zeros(0, dtype=float)),
            negative_log_likelihood=float("nan"),
            n_trials=0,
        )

    trajectories, nll = _score_hazard_grid(
        llr_vector, choice_vector, grid, beta=float(beta), eps=float(eps)
    )
    best_index = int(np.argmin(nll))

    return FitResult(
        fitted_hazard_rate=float(grid[best_index]),
        trajectory=_read_only(trajectories[best_index]),
        negative_log_likelihood=float(nll[best_index]),
        n_trials=int(llr_vector.size),
    )


def fit_hazard_rate_from_positions(
    positions: np.ndarray | Sequence[float],
    choices: np.ndarray | Sequence[int],
    sigma_ratio: float,
    hazard_grid: np.ndarray | Sequence[float] | None = None,
) -> FitResult:
    """Fit from centered positions (x - 0.5) instead of precomputed LLRs."""
    position_vector = _as_float_vector(positions, name="positions")
    llr_values = np.atleast_1d(position_to_llr(position_vector, sigma_ratio))
    return fit_hazard_rate(llr_values, choices, hazard_grid)
