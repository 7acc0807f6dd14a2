from __future__ import annotations

import math
import warnings
from typing import Iterable, Sequence

import numpy as np
import pandas as pd


def _validate_required_columns(
    df: pd.DataFrame,
    required_columns: Iterable[str],
    *,
    context: str,
) -> None:
    """Raise if any required column is absent, listing them in declaration order."""
    missing = [col for col in required_columns if col not in df.columns]
    if missing:
        raise ValueError(
            f"Missing required columns for {context}: {missing}. "
            f"Found columns: {list(df.columns)}"
        )


def _resolve_evidence_columns(
    df: pd.DataFrame,
    *,
    llr_column: str,
    position_columns: Sequence[str],
    context: str,
) -> list[str]:
    """Return the evidence columns present: the LLR column, the full position set, or both."""
    columns = [llr_column] if llr_column in df.columns else []
    if set(position_columns) <= set(df.columns):
        columns.extend(position_columns)
    if not columns:
        raise ValueError(
            f"Missing evidence columns for {context}: need '{llr_column}' or all of "
            f"{list(position_columns)}. Found columns: {list(df.columns)}"
        )
    return columns


def _coerce_numeric_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Return a copy with the selected columns coerced to numbers (unparseable -> NaN)."""
    out = df.copy()
    for col in columns:
        out[col] = pd.to_numeric(out[col], errors="coerce")
    return out


def _drop_non_finite_rows(
    df: pd.DataFrame,
    numeric_columns: Iterable[str],
    *,
    context: str,
) -> pd.DataFrame:
    """Drop trials with a missing or infinite value in any numeric column."""
    cols = list(numeric_columns)
    finite = np.isfinite(df[cols].to_numpy(dtype=float))
    keep = finite.all(axis=1)
    dropped = int((~keep).sum())
    if dropped == 0:
        return df

    offending = [col for col, ok in zip(cols, finite.all(axis=0)) if not ok]
    warnings.warn(
        f"Dropping {dropped} rows with non-finite values in {offending} during {context}.",
        RuntimeWarning,
        stacklevel=2,
    )
    return df.loc[keep].copy()


def _normalize_choice_labels_to_01(df: pd.DataFrame) -> pd.DataFrame:
    """Map `left`/`right` choice labels to `0`/`1`, leaving numeric codes as-is."""
    _validate_required_columns(df, ["choice"], context="choice normalization")

    out = df.copy()
    labels = out["choice"].astype(str).str.strip().str.lower()
    numeric = pd.to_numeric(out["choice"], errors="coerce")
    out["choice"] = numeric.mask(labels == "left", 0.0).mask(labels == "right", 1.0)
    return out


def _as_float_vector(values: np.ndarray | Sequence[float], *, name: str) -> np.ndarray:
    vector = np.asarray(values, dtype=float)
    if vector.ndim != 1:
        raise ValueError(f"{name} must be a one-dimensional sequence; found shape {vector.shape}.")
    if not np.isfinite(vector).all():
        raise ValueError(f"{name} contains non-finite values.")
    return vector


def _as_choice_vector(values: np.ndarray | Sequence[int], *, name: str = "choices") -> np.ndarray:
    """Validate binary choices coded as `0` (left) and `1` (right)."""
    raw = np.asarray(values, dtype=float)
    if raw.ndim != 1:
        raise ValueError(f"{name} must be a one-dimensional sequence; found shape {raw.shape}.")
    valid_mask = np.isin(raw, (0.0, 1.0))
    if not bool(np.all(valid_mask)):
        invalid_values = np.unique(raw[~valid_mask]).tolist()
        raise ValueError(
            f"Unsupported {name} encoding. Expected values in {{0, 1}}; "
            f"found invalid values: {invalid_values}"
        )
    return raw.astype(int)


def _validate_aligned_lengths(
    first: np.ndarray,
    second: np.ndarray,
    *,
    first_name: str,
    second_name: str,
) -> None:
    if first.shape[0] != second.shape[0]:
        raise ValueError(
            f"{first_name} and {second_name} must be index-aligned; "
            f"got lengths {first.shape[0]} and {second.shape[0]}."
        )


def _validate_positive_int(value: int, *, name: str) -> int:
    if isinstance(value, bool) or int(value) != value or int(value) <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}.")
    return int(value)


def _validate_positive_float(value: float, *, name: str) -> float:
    number = float(value)
    if not math.isfinite(number) or number <= 0.0:
        raise ValueError(f"{name} must be a positive finite number, got {value!r}.")
    return number
