from __future__ import annotations

import math
import warnings

import numpy as np

from .constants import (
    LEFT_SOURCE_MEAN,
    MAX_REJECTION_ATTEMPTS,
    MIN_CENTER_OFFSET,
    POSITION_MAX,
    POSITION_MIN,
    RIGHT_SOURCE_MEAN,
    SCREEN_CENTER,
    SOURCE_LEFT,
    SOURCE_RIGHT,
    VERTICAL_MEAN,
)
from .data_validation import _validate_positive_float, _validate_positive_int
from .records import Trial
from .sampling import BoxMullerNormal, resolve_rng


def _clamp_generation_hazard(hazard_rate: float) -> float:
    """Clamp a generative hazard rate into `[0, 1]`."""
    h = float(hazard_rate)
    if math.isnan(h):
        raise ValueError("hazard_rate must not be NaN.")
    if h < 0.0 or h > 1.0:
        clamped = min(max(h, 0.0), 1.0)
        warnings.warn(
            f"hazard_rate {h} is outside [0, 1]; clamping to {clamped}.",
            RuntimeWarning,
            stacklevel=3,
        )
        return clamped
    return h


def _clamp_position(value: float) -> float:
    return min(max(value, POSITION_MIN), POSITION_MAX)


def _nudge_out_of_center_band(x: float, source: str) -> float:
    """Move `x` to the nearest edge of the excluded center band."""
    if x > SCREEN_CENTER:
        return SCREEN_CENTER + MIN_CENTER_OFFSET
    if x < SCREEN_CENTER:
        return SCREEN_CENTER - MIN_CENTER_OFFSET
    if source == SOURCE_RIGHT:
        return SCREEN_CENTER + MIN_CENTER_OFFSET
    return SCREEN_CENTER - MIN_CENTER_OFFSET


def _sample_horizontal_position(
    mu_x: float,
    actual_sigma: float,
    source: str,
    normal: BoxMullerNormal,
    max_attempts: int,
) -> tuple[float, bool]:
    """Sample `x` with rejection of the center band.

    Returns the position and whether the retry budget ran out. When it does,
    the last draw is nudged onto the band edge, which puts a small point mass
    at `0.5 +/- MIN_CENTER_OFFSET`.
    """
    x = _clamp_position(mu_x + normal.draw() * actual_sigma)
    attempts = 0
    while abs(x - SCREEN_CENTER) < MIN_CENTER_OFFSET:
        if attempts >= max_attempts:
            return _nudge_out_of_center_band(x, source), True
        x = _clamp_position(mu_x + normal.draw() * actual_sigma)
        attempts += 1
    return x, False


def generate_block_trials(
    trial_count: int,
    hazard_rate: float,
    sigma_ratio: float,
    rng: np.random.Generator | int | None = None,
    *,
    max_rejection_attempts: int = MAX_REJECTION_ATTEMPTS,
) -> tuple[Trial, ...]:
    """
    Generates the hidden source sequence and stimulus positions for one block.

    The source starts on a random side and flips with probability
    `hazard_rate` before every trial. Positions are drawn from an isotropic
    Gaussian around the active source center; only the horizontal coordinate
    carries information about the source.

    Args:
        trial_count (int): Number of trials to generate.
        hazard_rate (float): Per-trial switch probability, clamped to [0, 1].
        sigma_ratio (float): Noise standard deviation as a fraction of the
            distance between the two source centers (e.g. 0.24, 0.33, 0.41).
        rng: NumPy generator or integer seed. `None` draws fresh entropy.
        max_rejection_attempts (int): Resampling budget for the center band
            before falling back to a nudge.

    Returns:
        tuple[Trial, ...]: Trials in presentation order.
    """
    n_trials = _validate_positive_int(trial_count, name="trial_count")
    ratio = _validate_positive_float(sigma_ratio, name="sigma_ratio")
    if int(max_rejection_attempts) < 0:
        raise ValueError("max_rejection_attempts must be >= 0")
    h = _clamp_generation_hazard(hazard_rate)
    generator = resolve_rng(rng)
    normal = BoxMullerNormal(generator)

    current_source = SOURCE_LEFT if float(generator.random()) < 0.5 else SOURCE_RIGHT

    distance = RIGHT_SOURCE_MEAN - LEFT_SOURCE_MEAN
    actual_sigma = ratio * distance

    trials: list[Trial] = []
    n_fallbacks = 0
    for index in range(n_trials):
        if float(generator.random()) < h:
            current_source = SOURCE_RIGHT if current_source == SOURCE_LEFT else SOURCE_LEFT

        mu_x = LEFT_SOURCE_MEAN if current_source == SOURCE_LEFT else RIGHT_SOURCE_MEAN

        x, fell_back = _sample_horizontal_position(
            mu_x,
            actual_sigma,
            current_source,
            normal,
            int(max_rejection_attempts),
        )
        n_fallbacks += int(fell_back)

        y = _clamp_position(VERTICAL_MEAN + normal.draw() * actual_sigma)

        trials.append(Trial(index=index, source=current_source, x=float(x), y=float(y)))

    if n_fallbacks > 0:
        warnings.warn(
            f"Center-band rejection exhausted {max_rejection_attempts} attempts on "
            f"{n_fallbacks} of {n_trials} trials (sigma_ratio={ratio}); "
            "those positions were nudged to the band edge.",
            RuntimeWarning,
            stacklevel=2,
        )

    return tuple(trials)
