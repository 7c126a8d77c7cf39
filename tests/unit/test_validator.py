"""Test the row validator."""

import datetime
from typing import Any

import pytest

from accelview.core import models
from accelview.io.readers import validator


def test_validate_row_valid() -> None:
    """Test a well formed row becomes a Sample."""
    row = {"timestamp": "2024-01-01T00:00:00Z", "x": "0.9", "y": "0.1", "z": "0"}

    result = validator.validate_row(row)

    assert isinstance(result, models.Sample)
    assert result.timestamp == datetime.datetime(
        2024, 1, 1, tzinfo=datetime.timezone.utc
    )
    assert (result.x, result.y, result.z) == (0.9, 0.1, 0.0)


def test_validate_row_ignores_extra_columns() -> None:
    """Test columns beyond timestamp, x, y, z are dropped."""
    row = {"timestamp": "2024-01-01T00:00:00Z", "x": 1, "y": 2, "z": 3, "hr": 80}

    result = validator.validate_row(row)

    assert isinstance(result, models.Sample)
    assert not hasattr(result, "hr")


@pytest.mark.parametrize(
    "row",
    [
        {"timestamp": "bad", "x": 1, "y": 1, "z": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": "abc", "y": 1, "z": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": 1, "y": "nan", "z": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": 1, "y": 1, "z": float("inf")},
        {"timestamp": "2024-01-01T00:00:00Z", "x": "", "y": 1, "z": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": 1, "y": None, "z": 1},
        {"timestamp": "  ", "x": 1, "y": 1, "z": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": 1, "y": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": True, "y": 1, "z": 1},
        {"timestamp": "2024-01-01T00:00:00Z", "x": 1, "y": 1, "z": False},
        None,
        ["2024-01-01T00:00:00Z", 1, 1, 1],
    ],
)
def test_validate_row_rejections(row: Any) -> None:
    """Test malformed rows are rejected rather than coerced."""
    result = validator.validate_row(row)

    assert isinstance(result, validator.Rejection)
    assert result.reason


def test_validate_row_missing_reason() -> None:
    """Test the rejection names the missing column."""
    result = validator.validate_row({"timestamp": "2024-01-01", "x": 1, "y": 1})

    assert isinstance(result, validator.Rejection)
    assert "'z'" in result.reason


def test_validate_row_naive_timestamp_is_utc() -> None:
    """Test naive timestamps are interpreted as UTC."""
    row = {"timestamp": datetime.datetime(2024, 5, 2, 12), "x": 0, "y": 0, "z": 0}

    result = validator.validate_row(row)

    assert isinstance(result, models.Sample)
    assert result.timestamp.tzinfo == datetime.timezone.utc
    assert result.timestamp.hour == 12


def test_validate_row_strips_text_cells() -> None:
    """Test padding around the timestamp and axis cells is ignored."""
    row = {"timestamp": " 2024-01-01T00:00:00Z ", "x": " 0.9", "y": "0.1 ", "z": "0"}

    result = validator.validate_row(row)

    assert isinstance(result, models.Sample)
    assert result.timestamp == datetime.datetime(
        2024, 1, 1, tzinfo=datetime.timezone.utc
    )
    assert result.x == 0.9
