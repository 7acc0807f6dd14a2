from __future__ import annotations

import warnings
from copy import deepcopy
from typing import Iterator, Sequence

import numpy as np
import pandas as pd

from .constants import (
    ALLOWED_HAZARD_RATES,
    ALLOWED_SIGMA_LEVELS,
    PHASE_MANUAL,
    PHASE_WITH_REPLACEMENT,
    PHASE_WITHOUT_REPLACEMENT,
    SESSION_COLUMNS,
    SOURCE_RIGHT,
)
from .data_validation import _validate_positive_float, _validate_positive_int
from .records import Block
from .sampling import draw_session_sigma, fisher_yates_shuffle, resolve_rng
from .trial_generator import generate_block_trials


_DEFAULT_SESSION_CONFIG: dict[str, object] = {
    "hazard_rate": 0.05,
    "distribution_sigma": None,
    "trial_count": 40,
    "block_count": 4,
}


def build_session_config(
    config: dict[str, object] | None = None,
    rng: np.random.Generator | int | None = None,
) -> dict[str, object]:
    """Merge a session configuration over defaults and validate it.

    A missing `distribution_sigma` is drawn from the allowed sigma levels.
    """
    merged = deepcopy(_DEFAULT_SESSION_CONFIG)
    if config is not None:
        unknown = sorted(set(config) - set(_DEFAULT_SESSION_CONFIG))
        if unknown:
            raise ValueError(
                f"Unknown session config keys: {unknown}. "
                f"Allowed keys: {sorted(_DEFAULT_SESSION_CONFIG)}"
            )
        merged.update(config)

    merged["trial_count"] = _validate_positive_int(merged["trial_count"], name="trial_count")
    merged["block_count"] = _validate_positive_int(merged["block_count"], name="block_count")
    merged["hazard_rate"] = float(merged["hazard_rate"])

    if merged["distribution_sigma"] is None:
        merged["distribution_sigma"] = draw_session_sigma(rng)
    sigma = _validate_positive_float(merged["distribution_sigma"], name="distribution_sigma")
    if not any(np.isclose(sigma, level) for level in ALLOWED_SIGMA_LEVELS):
        warnings.warn(
            f"distribution_sigma {sigma} is not one of the conventional levels "
            f"{list(ALLOWED_SIGMA_LEVELS)}.",
            RuntimeWarning,
            stacklevel=2,
        )
    merged["distribution_sigma"] = sigma
    return merged


def iter_block_hazard_rates(
    block_count: int,
    hazard_pool: Sequence[float] = ALLOWED_HAZARD_RATES,
    rng: np.random.Generator | int | None = None,
) -> Iterator[tuple[float, str]]:
    """Yield `(hazard_rate, sampling_phase)` for each block of a multi-block session.

    The first `len(hazard_pool)` blocks consume a uniform permutation of the
    pool, so no rate repeats. Later blocks draw independently from the pool.
    """
    n_blocks = _validate_positive_int(block_count, name="block_count")
    pool = [float(rate) for rate in hazard_pool]
    if not pool:
        raise ValueError("hazard_pool must not be empty.")
    generator = resolve_rng(rng)

    shuffled_pool = fisher_yates_shuffle(pool, generator)
    for rate in shuffled_pool[:n_blocks]:
        yield rate, PHASE_WITHOUT_REPLACEMENT

    for _ in range(n_blocks - len(shuffled_pool)):
        yield pool[int(generator.integers(0, len(pool)))], PHASE_WITH_REPLACEMENT


def compose_session(
    block_count: int,
    trial_count: int,
    sigma_ratio: float,
    manual_hazard_rate: float,
    rng: np.random.Generator | int | None = None,
    *,
    hazard_pool: Sequence[float] = ALLOWED_HAZARD_RATES,
) -> tuple[Block, ...]:
    """Generate a full session of blocks.

    One block uses `manual_hazard_rate` verbatim. More than one block takes
    its rates from `iter_block_hazard_rates`. All blocks share `sigma_ratio`.
    """
    n_blocks = _validate_positive_int(block_count, name="block_count")
    n_trials = _validate_positive_int(trial_count, name="trial_count")
    generator = resolve_rng(rng)

    if n_blocks == 1:
        schedule = [(float(manual_hazard_rate), PHASE_MANUAL)]
    else:
        schedule = list(iter_block_hazard_rates(n_blocks, hazard_pool, generator))

    blocks: list[Block] = []
    for block_index, (hazard_rate, phase) in enumerate(schedule):
        trials = generate_block_trials(n_trials, hazard_rate, sigma_ratio, generator)
        blocks.append(
            Block(
                block_id=block_index + 1,
                hazard_rate=hazard_rate,
                sigma_ratio=float(sigma_ratio),
                sampling_phase=phase,
                trials=trials,
            )
        )
    return tuple(blocks)


def compose_session_from_config(
    config: dict[str, object] | None = None,
    rng: np.random.Generator | int | None = None,
) -> tuple[Block, ...]:
    """Build a session from a configuration dict (see `build_session_config`)."""
    generator = resolve_rng(rng)
    session_config = build_session_config(config, rng=generator)
    return compose_session(
        block_count=int(session_config["block_count"]),
        trial_count=int(session_config["trial_count"]),
        sigma_ratio=float(session_config["distribution_sigma"]),
        manual_hazard_rate=float(session_config["hazard_rate"]),
        rng=generator,
    )


def session_to_frame(session: Sequence[Block]) -> pd.DataFrame:
    """Flatten a session into one row per trial."""
    rows: list[dict[str, object]] = []
    for block in session:
        for trial in block.trials:
            rows.append(
                {
                    "block_id": int(block.block_id),
                    "trial_index": int(trial.index),
                    "hazard_rate": float(block.hazard_rate),
                    "noise_sigma": float(block.sigma_ratio),
                    "sampling_phase": block.sampling_phase,
                    "source": trial.source,
                    "x": float(trial.x),
                    "y": float(trial.y),
                    "correct_side": int(trial.source == SOURCE_RIGHT),
                }
            )
    return pd.DataFrame(rows, columns=list(SESSION_COLUMNS))
