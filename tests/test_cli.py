"""End-to-end tests for the command line entrypoint."""

from pathlib import Path

import pandas as pd
import pytest

from glaze_task.cli import main


class TestSimulateAndFit:
    def test_simulate_then_fit(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        session_csv = tmp_path / "session.csv"
        main(
            [
                "simulate",
                "--blocks", "3",
                "--trials", "40",
                "--sigma", "0.33",
                "--seed", "1",
                "--with-observer",
                "--output", str(session_csv),
            ]
        )
        session_df = pd.read_csv(session_csv)
        assert len(session_df) == 120
        assert {"choice", "LLR", "reward", "correct_side"} <= set(session_df.columns)
        assert set(session_df["choice"].unique()) <= {0, 1}

        blocks_csv = tmp_path / "out" / "blocks.csv"
        trajectory_csv = tmp_path / "out" / "trajectory.csv"
        main(
            [
                "fit",
                "--csv-path", str(session_csv),
                "--blocks-output", str(blocks_csv),
                "--trajectory-output", str(trajectory_csv),
            ]
        )
        out = capsys.readouterr().out
        assert "Block fits:" in out
        assert "Regression:" in out

        blocks = pd.read_csv(blocks_csv)
        assert blocks["block_id"].tolist() == [1, 2, 3]
        assert len(pd.read_csv(trajectory_csv)) == 120

    def test_simulate_without_observer_has_no_choices(self, tmp_path: Path) -> None:
        session_csv = tmp_path / "session.csv"
        main(
            [
                "simulate",
                "--blocks", "1",
                "--trials", "10",
                "--hazard-rate", "0.2",
                "--sigma", "0.24",
                "--seed", "0",
                "--output", str(session_csv),
            ]
        )
        session_df = pd.read_csv(session_csv)
        assert "choice" not in session_df.columns
        assert (session_df["hazard_rate"] == 0.2).all()


class TestRecover:
    def test_recover_prints_block_table(self, capsys: pytest.CaptureFixture) -> None:
        main(["recover", "--blocks", "2", "--trials", "30", "--sigma", "0.41", "--seed", "3"])
        out = capsys.readouterr().out
        assert "Sigma ratio: 0.41" in out
        assert "fitted_hazard_rate" in out


class TestArguments:
    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            main([])


class TestFitExportedChoiceData:
    def test_fit_accepts_llr_only_export(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        export_csv = tmp_path / "choice_data.csv"
        pd.DataFrame(
            {
                "block_id": [1, 1, 1, 1, 2, 2, 2, 2],
                "trial_index": [0, 1, 2, 3, 0, 1, 2, 3],
                "hazard_rate": [0.1] * 4 + [0.9] * 4,
                "LLR": [2.1, 1.4, -0.6, 1.8, 1.2, -1.9, 2.4, -0.8],
                "choice": [1, 1, 1, 1, 1, 0, 1, 0],
                "correct_side": [1, 1, 1, 1, 1, 0, 1, 0],
            }
        ).to_csv(export_csv, index=False)

        blocks_csv = tmp_path / "blocks.csv"
        main(["fit", "--csv-path", str(export_csv), "--blocks-output", str(blocks_csv)])
        out = capsys.readouterr().out
        assert "Block fits:" in out

        blocks = pd.read_csv(blocks_csv)
        assert blocks["block_id"].tolist() == [1, 2]
        assert blocks["n_trials"].tolist() == [4, 4]
        assert blocks["accuracy"].tolist() == [100.0, 100.0]
