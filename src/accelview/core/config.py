"""Configuration module for accelview."""

import logging
from importlib import metadata
from typing import Literal, Tuple

import pydantic


def get_version() -> str:
    """Return accelview version."""
    try:
        return metadata.version("accelview")
    except metadata.PackageNotFoundError:
        return "Version unknown"


def get_logger() -> logging.Logger:
    """Gets the accelview logger."""
    logger = logging.getLogger("accelview")
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)s - %(funcName)s - %(message)s",  # noqa: E501
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


class Settings(pydantic.BaseModel):
    """Pipeline settings.

    Attributes:
        variant: Which capabilities the orchestrator is built with. 'local' parses
            in-memory uploads and labels samples with the threshold rule, 'remote'
            fetches from a dataset store and labels through a classification
            backend.
        preview_rows: Number of leading rows exposed as the preview.
        chunk_size: Number of rows validated between cooperative yields.
        walking_threshold: The x-axis value above which a sample is labelled
            Walking by the threshold classifier.
        models: The model identifiers that may be requested for classification.
        local_extensions: File extensions accepted by the local variant.
        remote_extensions: File extensions accepted by the remote variant.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    variant: Literal["local", "remote"] = "local"
    preview_rows: int = pydantic.Field(default=5, ge=0)
    chunk_size: int = pydantic.Field(default=10_000, gt=0)
    walking_threshold: float = 0.5
    models: Tuple[str, ...] = ("linear-regression", "decision-tree")
    local_extensions: Tuple[str, ...] = (".csv",)
    remote_extensions: Tuple[str, ...] = (".csv", ".zip")

    @property
    def allowed_extensions(self) -> Tuple[str, ...]:
        """The file extensions accepted by the configured variant."""
        if self.variant == "remote":
            return self.remote_extensions
        return self.local_extensions
