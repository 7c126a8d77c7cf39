"""Row level validation of accelerometer samples."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

import pydantic

from accelview.core import models


@dataclass(frozen=True)
class Rejection:
    """A row that did not pass validation.

    Attributes:
        reason: Human readable explanation of the first failing field.
    """

    reason: str


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_row(row: Any) -> Union[models.Sample, Rejection]:
    """Validate one raw row and convert it to a Sample.

    All of 'timestamp', 'x', 'y' and 'z' must be present and non-empty. The axis
    values must parse as finite floats, and the timestamp must parse as a point in
    time (ISO-8601 string, datetime, or unix epoch number). Booleans are not
    numbers. Surrounding whitespace in text cells is ignored, as are extra
    columns.

    Args:
        row: Mapping of column name to raw cell value. Anything else is rejected.

    Returns:
        The validated Sample, or a Rejection describing why the row was dropped.
    """
    if not isinstance(row, Mapping):
        return Rejection(reason=f"row is not a mapping: {type(row).__name__}")

    values: Dict[str, Any] = {}
    for column in models.REQUIRED_COLUMNS:
        value = row.get(column)
        if _is_blank(value):
            return Rejection(reason=f"missing value for '{column}'")
        if isinstance(value, bool):
            return Rejection(reason=f"invalid '{column}': booleans are not accepted")
        values[column] = value.strip() if isinstance(value, str) else value

    try:
        return models.Sample(**values)
    except pydantic.ValidationError as exc_info:
        error = exc_info.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        return Rejection(reason=f"invalid '{location}': {error['msg']}")
