"""Smoke tests for accelview cli."""

import json
import pathlib

import polars as pl
from typer import testing

from accelview.core import cli


def test_main_classifies_and_saves(
    example_csv_file: pathlib.Path, tmp_path: pathlib.Path
) -> None:
    """Test the cli end to end with the threshold classifier."""
    output = tmp_path / "walk_classified.csv"

    result = testing.CliRunner().invoke(
        cli.app, [str(example_csv_file), "-o", str(output), "-m", "linear-regression"]
    )

    assert result.exit_code == 0
    assert "First Rows of Classified Data" in result.output
    assert pl.read_csv(output)["activity"].to_list() == ["Walking", "Stationary"]
    with open(output.with_suffix(".json")) as f:
        assert json.load(f)["processing_parameters"]["model"] == "linear-regression"


def test_main_header_only(tmp_path: pathlib.Path) -> None:
    """Test a file without data rows fails with a readable message."""
    input_file = tmp_path / "empty.csv"
    input_file.write_text("timestamp,x,y,z\n")

    result = testing.CliRunner().invoke(cli.app, [str(input_file)])

    assert result.exit_code == 1
    assert "No valid data found" in result.output
