from __future__ import annotations

from pathlib import Path

import pandas as pd

from .constants import LLR_COLUMN, POSITION_EVIDENCE_COLUMNS, REQUIRED_CHOICE_COLUMNS
from .data_validation import (
    _coerce_numeric_columns,
    _drop_non_finite_rows,
    _normalize_choice_labels_to_01,
    _resolve_evidence_columns,
    _validate_required_columns,
)


def _resolve_csv_path(csv_path: str | Path) -> Path:
    """Resolve a CSV path from cwd or repository root.

    Raises:
        FileNotFoundError: If the path cannot be resolved.
    """
    path = Path(csv_path)
    if path.exists():
        return path.resolve()

    if not path.is_absolute():
        repo_root_candidate = (Path(__file__).resolve().parents[2] / path).resolve()
        if repo_root_candidate.exists():
            return repo_root_candidate

    raise FileNotFoundError(f"Could not find CSV file: {csv_path}")


def prepare_choice_data(df: pd.DataFrame, *, context: str = "choice data") -> pd.DataFrame:
    """Validate a raw choice table and normalize its dtypes.

    Evidence may arrive as an `LLR` column, as `x` with `noise_sigma`, or both.
    """
    _validate_required_columns(df, REQUIRED_CHOICE_COLUMNS, context=context)
    numeric_columns = list(REQUIRED_CHOICE_COLUMNS) + _resolve_evidence_columns(
        df,
        llr_column=LLR_COLUMN,
        position_columns=POSITION_EVIDENCE_COLUMNS,
        context=context,
    )

    out = _normalize_choice_labels_to_01(df)
    out = _coerce_numeric_columns(out, numeric_columns)
    out = _drop_non_finite_rows(out, numeric_columns, context=context)

    out["block_id"] = out["block_id"].astype(int)
    out["trial_index"] = out["trial_index"].astype(int)
    out["choice"] = out["choice"].astype(int)
    if "correct_side" in out.columns:
        out["correct_side"] = pd.to_numeric(out["correct_side"], errors="coerce")
        if out["correct_side"].isna().any():
            out = out.drop(columns=["correct_side"])
        else:
            out["correct_side"] = out["correct_side"].astype(int)
    return out.sort_values(["block_id", "trial_index"]).reset_index(drop=True)


def load_choice_data(csv_path: str | Path) -> pd.DataFrame:
    """Load a per-trial choice CSV (one row per trial, any number of blocks)."""
    path = _resolve_csv_path(csv_path)
    df = pd.read_csv(path)
    return prepare_choice_data(df, context=f"choice data '{path.name}'")
