from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from .analysis import (
    attach_evidence_columns,
    build_choice_table,
    fit_session_blocks,
    hazard_recovery_regression,
)
from .data_loading import load_choice_data
from .observer import simulate_observer_choices
from .session import compose_session_from_config, session_to_frame


def _session_config_from_args(args: argparse.Namespace) -> dict[str, object]:
    return {
        "hazard_rate": float(args.hazard_rate),
        "distribution_sigma": None if args.sigma is None else float(args.sigma),
        "trial_count": int(args.trials),
        "block_count": int(args.blocks),
    }


def _observer_choices_for_session(
    session_df: pd.DataFrame,
    *,
    observer_hazard: float | None,
    deterministic: bool,
    rng: np.random.Generator,
) -> np.ndarray:
    """Simulate one observer per block, at the block's true rate unless overridden."""
    choices = np.zeros(len(session_df), dtype=int)
    for _, block_df in session_df.groupby("block_id", sort=True):
        llr = attach_evidence_columns(block_df)["LLR"]
        hazard = float(block_df["hazard_rate"].iloc[0]) if observer_hazard is None else observer_hazard
        choices[block_df.index.to_numpy()] = simulate_observer_choices(
            llr.to_numpy(dtype=float),
            hazard,
            rng,
            deterministic=deterministic,
        )
    return choices


def _write_csv(df: pd.DataFrame, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(target, index=False)
    return target


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI parser for session simulation and hazard fitting."""
    parser = argparse.ArgumentParser(description="Hazard-switching triangles task tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_session_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--blocks", type=int, default=4)
        sub.add_argument("--trials", type=int, default=40)
        sub.add_argument(
            "--hazard-rate",
            type=float,
            default=0.05,
            help="Hazard rate used when --blocks is 1.",
        )
        sub.add_argument(
            "--sigma",
            type=float,
            default=None,
            help="Noise ratio sigma/distance. Drawn from 0.24, 0.33, 0.41 when omitted.",
        )
        sub.add_argument("--seed", type=int, default=None)

    simulate_parser = subparsers.add_parser(
        "simulate",
        help="Generate a session and write one row per trial.",
    )
    add_session_arguments(simulate_parser)
    simulate_parser.add_argument("--output", type=str, required=True)
    simulate_parser.add_argument(
        "--with-observer",
        action="store_true",
        help="Attach choices of a simulated Glaze observer.",
    )
    simulate_parser.add_argument(
        "--observer-hazard",
        type=float,
        default=None,
        help="Observer's subjective hazard rate. Defaults to each block's true rate.",
    )
    simulate_parser.add_argument("--deterministic-observer", action="store_true")

    fit_parser = subparsers.add_parser(
        "fit",
        help="Fit a subjective hazard rate to each block of a choice CSV.",
    )
    fit_parser.add_argument("--csv-path", type=str, required=True)
    fit_parser.add_argument("--blocks-output", type=str, default=None)
    fit_parser.add_argument("--trajectory-output", type=str, default=None)

    recover_parser = subparsers.add_parser(
        "recover",
        help="Simulate observers at the true hazard rates and refit them.",
    )
    add_session_arguments(recover_parser)
    recover_parser.add_argument("--deterministic-observer", action="store_true")

    return parser


def _print_fit_summary(block_table: pd.DataFrame) -> None:
    print("Block fits:")
    print(block_table.to_string(index=False))
    regression = hazard_recovery_regression(block_table)
    if regression is None:
        print("\nRegression: not enough distinct true hazard rates.")
    else:
        print(
            f"\nRegression: fitted = {regression['slope']:.3f} * true "
            f"+ {regression['intercept']:.3f}"
        )


def _cmd_simulate(args: argparse.Namespace) -> None:
    rng = np.random.default_rng(args.seed)
    session = compose_session_from_config(_session_config_from_args(args), rng=rng)
    session_df = session_to_frame(session)

    if args.with_observer:
        choices = _observer_choices_for_session(
            session_df,
            observer_hazard=args.observer_hazard,
            deterministic=bool(args.deterministic_observer),
            rng=rng,
        )
        session_df = build_choice_table(session_df, choices)

    target = _write_csv(session_df, args.output)
    print(f"Session written: {target}")
    print(
        f"Blocks: {session_df['block_id'].nunique()} | Trials: {len(session_df)} | "
        f"Sigma ratio: {session_df['noise_sigma'].iloc[0]}"
    )


def _cmd_fit(args: argparse.Namespace) -> None:
    choice_df = build_choice_table(load_choice_data(args.csv_path))
    fits = fit_session_blocks(choice_df)
    _print_fit_summary(fits["block_table"])

    if args.blocks_output is not None:
        print(f"Block table written: {_write_csv(fits['block_table'], args.blocks_output)}")
    if args.trajectory_output is not None:
        print(
            "Trajectory table written: "
            f"{_write_csv(fits['trajectory_table'], args.trajectory_output)}"
        )


def _cmd_recover(args: argparse.Namespace) -> None:
    rng = np.random.default_rng(args.seed)
    session = compose_session_from_config(_session_config_from_args(args), rng=rng)
    session_df = session_to_frame(session)
    choices = _observer_choices_for_session(
        session_df,
        observer_hazard=None,
        deterministic=bool(args.deterministic_observer),
        rng=rng,
    )
    choice_df = build_choice_table(session_df, choices)
    fits = fit_session_blocks(choice_df)
    print(f"Sigma ratio: {session_df['noise_sigma'].iloc[0]} | Trials per block: {args.trials}")
    _print_fit_summary(fits["block_table"])


def main(argv: list[str] | None = None) -> None:
    """Run CLI entrypoint."""
    args = _build_arg_parser().parse_args(argv)

    if args.command == "simulate":
        _cmd_simulate(args)
        return
    if args.command == "fit":
        _cmd_fit(args)
        return
    if args.command == "recover":
        _cmd_recover(args)
        return

    raise ValueError(f"Unsupported command: {args.command}")


if __name__ == "__main__":
    main()
