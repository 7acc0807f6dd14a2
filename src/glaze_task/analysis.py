"""Choice tables, per-block hazard fits and summary statistics for a session."""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .belief_model import position_to_llr
from .constants import (
    LLR_COLUMN,
    POSITION_EVIDENCE_COLUMNS,
    REQUIRED_CHOICE_COLUMNS,
    SCREEN_CENTER,
)
from .data_validation import (
    _as_choice_vector,
    _resolve_evidence_columns,
    _validate_required_columns,
)
from .hazard_fitter import fit_hazard_rate


def reward_magnitude(x: float | np.ndarray) -> float | np.ndarray:
    """Points for a trial: distance from center in percent, rounded half up."""
    magnitude = np.floor(np.abs(np.asarray(x, dtype=float) - SCREEN_CENTER) * 100.0 + 0.5)
    if np.ndim(magnitude) == 0:
        return int(magnitude)
    return magnitude.astype(int)


def trial_reward(x: float | np.ndarray, is_correct: bool | np.ndarray) -> int | np.ndarray:
    """Signed reward: +magnitude for a correct choice, -magnitude otherwise."""
    magnitude = reward_magnitude(x)
    signed = np.where(np.asarray(is_correct, dtype=bool), magnitude, -np.asarray(magnitude))
    if np.ndim(signed) == 0:
        return int(signed)
    return signed.astype(int)


def _has_position_columns(df: pd.DataFrame) -> bool:
    return set(POSITION_EVIDENCE_COLUMNS) <= set(df.columns)


def attach_evidence_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Compute centered evidence and its LLR using each row's noise ratio."""
    out = df.copy()
    out["evidence"] = out["x"].astype(float) - SCREEN_CENTER
    out[LLR_COLUMN] = 0.0
    for sigma, index in out.groupby("noise_sigma", sort=False).groups.items():
        out.loc[index, LLR_COLUMN] = np.atleast_1d(
            position_to_llr(out.loc[index, "evidence"].to_numpy(dtype=float), float(sigma))
        )
    return out


def build_choice_table(
    session_frame: pd.DataFrame,
    choices: np.ndarray | Sequence[int] | None = None,
) -> pd.DataFrame:
    """Join per-trial choices onto a session table and derive evidence columns.

    `choices` must be aligned with the rows of `session_frame`; when omitted,
    the frame's own `choice` column is used. Tables with positions get their
    LLR recomputed from `x` and `noise_sigma`; LLR-only tables keep theirs.
    """
    df = session_frame.copy()
    if choices is not None:
        choice_vector = _as_choice_vector(choices)
        if choice_vector.size != len(df):
            raise ValueError(
                f"choices must have one entry per session row; "
                f"got {choice_vector.size} choices for {len(df)} rows."
            )
        df["choice"] = choice_vector
    _validate_required_columns(df, REQUIRED_CHOICE_COLUMNS, context="choice table")
    _resolve_evidence_columns(
        df,
        llr_column=LLR_COLUMN,
        position_columns=POSITION_EVIDENCE_COLUMNS,
        context="choice table",
    )
    df["choice"] = _as_choice_vector(df["choice"].to_numpy())

    has_positions = _has_position_columns(df)
    if has_positions:
        df = attach_evidence_columns(df)
    if "correct_side" in df.columns:
        df["is_correct"] = df["choice"].to_numpy() == df["correct_side"].to_numpy(dtype=int)
        if has_positions:
            df["reward"] = trial_reward(df["x"].to_numpy(dtype=float), df["is_correct"].to_numpy())
    return df


def fit_session_blocks(choice_table: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """Fit a hazard rate to each block independently.

    Returns:
        dict with `block_table` (one row per block) and `trajectory_table`
        (fitted belief per trial, numbered across the whole session).
    """
    _validate_required_columns(choice_table, REQUIRED_CHOICE_COLUMNS, context="block fitting")
    _resolve_evidence_columns(
        choice_table,
        llr_column=LLR_COLUMN,
        position_columns=POSITION_EVIDENCE_COLUMNS,
        context="block fitting",
    )
    if LLR_COLUMN in choice_table.columns:
        df = choice_table
    else:
        df = attach_evidence_columns(choice_table)
    df = df.sort_values(["block_id", "trial_index"]).reset_index(drop=True)

    block_rows: list[dict[str, object]] = []
    trajectory_rows: list[dict[str, object]] = []
    session_trial = 0

    for block_id, block_df in df.groupby("block_id", sort=True):
        fit = fit_hazard_rate(
            block_df[LLR_COLUMN].to_numpy(dtype=float),
            block_df["choice"].to_numpy(),
        )
        if "is_correct" in block_df.columns:
            accuracy = float(block_df["is_correct"].astype(float).mean() * 100.0)
        else:
            accuracy = float("nan")
        if "noise_sigma" in block_df.columns:
            noise_sigma = float(block_df["noise_sigma"].iloc[0])
        else:
            noise_sigma = float("nan")

        block_rows.append(
            {
                "block_id": int(block_id),
                "true_hazard_rate": float(block_df["hazard_rate"].iloc[0]),
                "noise_sigma": noise_sigma,
                "fitted_hazard_rate": float(fit.fitted_hazard_rate),
                "negative_log_likelihood": float(fit.negative_log_likelihood),
                "accuracy": accuracy,
                "n_trials": int(fit.n_trials),
            }
        )

        for trial_index, belief in zip(block_df["trial_index"], fit.trajectory):
            session_trial += 1
            trajectory_rows.append(
                {
                    "block_id": int(block_id),
                    "trial_index": int(trial_index),
                    "session_trial": session_trial,
                    "belief_L": float(belief),
                }
            )

    return {
        "block_table": pd.DataFrame(
            block_rows,
            columns=[
                "block_id",
                "true_hazard_rate",
                "noise_sigma",
                "fitted_hazard_rate",
                "negative_log_likelihood",
                "accuracy",
                "n_trials",
            ],
        ),
        "trajectory_table": pd.DataFrame(
            trajectory_rows,
            columns=["block_id", "trial_index", "session_trial", "belief_L"],
        ),
    }


def hazard_recovery_regression(block_table: pd.DataFrame) -> dict[str, float] | None:
    """Least-squares line of fitted on true hazard rate across blocks.

    Returns `None` with fewer than two usable blocks or no spread in the true rates.
    """
    _validate_required_columns(
        block_table, ["true_hazard_rate", "fitted_hazard_rate"], context="hazard regression"
    )
    points = block_table[["true_hazard_rate", "fitted_hazard_rate"]].astype(float).dropna()
    if len(points) < 2:
        return None

    x = points["true_hazard_rate"].to_numpy()
    y = points["fitted_hazard_rate"].to_numpy()
    n = float(len(points))
    denominator = n * np.sum(x * x) - np.sum(x) ** 2
    if np.isclose(denominator, 0.0):
        return None

    slope = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denominator
    intercept = (np.sum(y) - slope * np.sum(x)) / n
    return {"slope": float(slope), "intercept": float(intercept)}


def psychometric_curve(choice_table: pd.DataFrame, bin_size: float = 0.1) -> pd.DataFrame:
    """Proportion of right choices per bin of centered evidence."""
    if bin_size <= 0:
        raise ValueError("bin_size must be > 0")
    _validate_required_columns(choice_table, ["x", "choice"], context="psychometric curve")

    evidence = choice_table["x"].astype(float) - SCREEN_CENTER
    binned = pd.DataFrame(
        {
            "bin": np.round(np.round(evidence / bin_size) * bin_size, 6),
            "evidence": evidence,
            "choice": choice_table["choice"].astype(float),
        }
    )
    curve = (
        binned.groupby("bin", as_index=False)
        .agg(
            evidence=("evidence", "mean"),
            prob_right=("choice", "mean"),
            n_trials=("choice", "size"),
        )
        .sort_values("evidence")
        .reset_index(drop=True)
    )
    return curve[["evidence", "prob_right", "n_trials"]]
