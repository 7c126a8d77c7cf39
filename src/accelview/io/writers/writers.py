"""Functions for writing displayed series to files."""

import datetime
import json
import pathlib
from typing import Any, Dict, Optional

from accelview.core import config, exceptions, models

VALID_FILE_TYPES = (".csv", ".parquet")

logger = config.get_logger()


def save_read_model(
    read_model: models.ReadModel,
    output: pathlib.Path,
    processing_params: Optional[Dict[str, Any]] = None,
) -> None:
    """Convert to polars and save the dataframe as a csv or parquet file.

    Args:
        read_model: The displayed series to save.
        output: The path and file name of the data to be saved, as either a csv or
            parquet file.
        processing_params: Parameters recorded in a JSON file next to the output.
    """
    logger.debug("Saving results.")
    validate_output(output=output)
    output.parent.mkdir(parents=True, exist_ok=True)

    results_dataframe = read_model.to_frame()
    if output.suffix == ".csv":
        results_dataframe.write_csv(output, separator=",")
    elif output.suffix == ".parquet":
        results_dataframe.write_parquet(output)

    logger.info("Results saved in: %s", output)

    params = {"file_id": read_model.file_id, "mode": read_model.mode.value}
    params.update(processing_params or {})
    save_config_as_json(output, params)


def save_config_as_json(
    output_path: pathlib.Path, processing_params: Dict[str, Any]
) -> None:
    """Save processing parameters as a JSON configuration file.

    Args:
        output_path: Path where the data file was saved. The JSON file will use
            the same name but with .json extension.
        processing_params: The parameters to record.
    """
    config_data = {
        "processing_time": datetime.datetime.now().isoformat(timespec="seconds"),
        "accelview_version": config.get_version(),
        "processing_parameters": processing_params,
    }

    config_path = output_path.with_suffix(".json")

    with open(config_path, "w") as f:
        json.dump(config_data, f, indent=4)

    logger.debug("Configuration saved in: %s", config_path)


def validate_output(output: pathlib.Path) -> None:
    """Validates that the output path has a valid format.

    Args:
        output: the name of the file to be saved, and the directory it will
            be saved in. Must be a .csv or .parquet file.

    Raises:
        InvalidFileTypeError: If the output file path ends with any extension other
            than csv or parquet.
    """
    if output.suffix not in VALID_FILE_TYPES:
        raise exceptions.InvalidFileTypeError(
            f"The extension: {output.suffix} is not supported. "
            "Please save the file as .csv or .parquet",
        )
