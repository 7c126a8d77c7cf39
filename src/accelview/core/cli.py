"""CLI for accelview."""

import logging
import pathlib
from typing import Optional

import typer
from rich import console, table

from accelview.core import config, exceptions, models

logger = config.get_logger()
app = typer.Typer(
    help="Parse, validate and classify an accelerometer CSV file.",
)


def version_check(version: bool) -> None:
    """Print the current version of accelview and exit."""
    if version:
        typer.echo(f"Accelview version: {config.get_version()}")
        raise typer.Exit()


def _preview_table(read_model: models.ReadModel) -> table.Table:
    """Build a table of the first rows of the displayed series."""
    title = (
        "First Rows of Classified Data"
        if read_model.mode == models.DisplayMode.classified
        else "First Rows of Raw Data"
    )
    preview = table.Table(title=f"{title}: {read_model.name}")
    for column in ("Timestamp", "X", "Y", "Z"):
        preview.add_column(column)
    if read_model.mode == models.DisplayMode.classified:
        preview.add_column("Activity")

    for sample in read_model.preview:
        cells = [
            sample.timestamp.isoformat(),
            f"{sample.x:g}",
            f"{sample.y:g}",
            f"{sample.z:g}",
        ]
        if isinstance(sample, models.ClassifiedSample):
            cells.append(sample.activity.value)
        preview.add_row(*cells)
    return preview


@app.command()
def main(
    input: pathlib.Path = typer.Argument(
        ..., help="Path to the input CSV file.", exists=True, dir_okay=False
    ),
    output: Optional[pathlib.Path] = typer.Option(
        None,
        "-o",
        "--output",
        help="Path where the displayed series will be saved. "
        "Supports .csv and .parquet formats.",
    ),
    model: Optional[str] = typer.Option(
        None,
        "-m",
        "--model",
        help="Classify the samples with this model. "
        "Choose from 'linear-regression' or 'decision-tree'. "
        "The raw series is shown if omitted.",
    ),
    preview_rows: int = typer.Option(
        5,
        "-n",
        "--preview-rows",
        help="Number of rows shown in the preview table.",
        min=0,
    ),
    walking_threshold: float = typer.Option(
        0.5,
        "-t",
        "--walking-threshold",
        help="Samples with an x value above this threshold are labelled Walking.",
    ),
    verbosity: bool = typer.Option(
        False,
        "-v",
        "--verbosity",
        help="Determines the level of verbosity. Use -v for DEBUG. "
        "Defaults to INFO if not included.",
    ),
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="Print the current version of accelview and exit.",
        is_eager=True,
        callback=version_check,
    ),
) -> None:
    """Run the accelview pipeline on a single file."""
    from accelview.core import orchestrator

    log_level = logging.INFO
    if verbosity:
        log_level = logging.DEBUG
    logger.setLevel(log_level)

    settings = config.Settings(
        preview_rows=preview_rows, walking_threshold=walking_threshold
    )
    logger.debug("Running accelview. arguments given: %s", locals())
    try:
        read_model = orchestrator.run(
            input=input,
            output=output,
            model_id=model,
            settings=settings,
            verbosity=log_level,
        )
    except exceptions.AccelviewError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    console.Console().print(_preview_table(read_model))


if __name__ == "__main__":
    app()
