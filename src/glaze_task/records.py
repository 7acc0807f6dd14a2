"""Immutable records shared by the generator, composer and fitter."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Trial:
    """One generated observation."""
    index: int
    source: str  # 'left' or 'right'
    x: float
    y: float


@dataclass(frozen=True)
class Block:
    """A run of trials sharing one hazard rate."""
    block_id: int
    hazard_rate: float
    sigma_ratio: float
    sampling_phase: str  # 'manual', 'without_replacement' or 'with_replacement'
    trials: tuple[Trial, ...]

    @property
    def n_trials(self) -> int:
        return len(self.trials)


@dataclass(frozen=True, eq=False)
class FitResult:
    """Best grid hazard rate for one choice sequence and the beliefs it implies."""
    fitted_hazard_rate: float
    trajectory: np.ndarray
    negative_log_likelihood: float
    n_trials: int


def _read_only(values: np.ndarray) -> np.ndarray:
    array = np.array(values, dtype=float, copy=True)
    array.setflags(write=False)
    return array
