from __future__ import annotations

from typing import Sequence

import numpy as np

from .belief_model import belief_trajectory, choice_probability_right
from .constants import CHOICE_BETA
from .sampling import resolve_rng


def simulate_observer_choices(
    llr_values: np.ndarray | Sequence[float],
    hazard_rate: float,
    rng: np.random.Generator | int | None = None,
    *,
    beta: float = CHOICE_BETA,
    deterministic: bool = False,
) -> np.ndarray:
    """Simulate choices (0 = left, 1 = right) of a Glaze observer with a fixed hazard rate.

    The deterministic observer picks right whenever its belief is positive.
    Otherwise choices are sampled from the logistic readout used for scoring.
    """
    trajectory = belief_trajectory(llr_values, hazard_rate)
    if deterministic:
        return (trajectory > 0.0).astype(int)

    generator = resolve_rng(rng)
    prob_right = choice_probability_right(trajectory, beta=beta)
    return (generator.random(trajectory.size) < prob_right).astype(int)
