"""Internal data model."""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Tuple, Union

import polars as pl
import pydantic
from pydantic import BaseModel, field_validator

REQUIRED_COLUMNS = ("timestamp", "x", "y", "z")


class Activity(str, Enum):
    """Activity labels assigned by a classifier."""

    walking = "Walking"
    stationary = "Stationary"


class DisplayMode(str, Enum):
    """Which series of the active file is shown."""

    raw = "raw"
    classified = "classified"


class ViewStatus(str, Enum):
    """Lifecycle of the active file in the view-state machine."""

    no_selection = "no_selection"
    raw_loading = "raw_loading"
    raw_ready = "raw_ready"
    classifying = "classifying"
    classified_ready = "classified_ready"


class Sample(BaseModel):
    """A single accelerometer reading and its corresponding time.

    Samples are immutable. Naive timestamps are interpreted as UTC so that every
    sample in a series shares one time zone.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    timestamp: datetime.datetime
    x: float = pydantic.Field(allow_inf_nan=False)
    y: float = pydantic.Field(allow_inf_nan=False)
    z: float = pydantic.Field(allow_inf_nan=False)

    @field_validator("timestamp")
    def validate_timestamp(cls, v: datetime.datetime) -> datetime.datetime:
        """Normalize the timestamp to UTC.

        Args:
            cls: The class.
            v: The parsed timestamp.

        Returns:
            The timestamp as a timezone aware UTC datetime.
        """
        if v.tzinfo is None:
            return v.replace(tzinfo=datetime.timezone.utc)
        return v.astimezone(datetime.timezone.utc)


class ClassifiedSample(Sample):
    """A sample paired with the activity label derived from it."""

    activity: Activity

    @classmethod
    def from_sample(cls, sample: Sample, activity: Activity) -> "ClassifiedSample":
        """Creates a classified sample from a validated sample.

        Args:
            sample: The source sample, left untouched.
            activity: The label assigned to the sample.
        """
        return cls(
            timestamp=sample.timestamp,
            x=sample.x,
            y=sample.y,
            z=sample.z,
            activity=activity,
        )


class LocalSource(BaseModel):
    """Content held in memory, supplied by the user on upload."""

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["local"] = "local"
    content: Union[str, bytes]


class RemoteSource(BaseModel):
    """A dataset held by the remote store, addressed by its locator."""

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    locator: str


class FileEntry(BaseModel):
    """Registry record for one dataset file.

    The selected, visible and display_mode attributes are UI projections and are
    never persisted. The generation counter is bumped whenever the entry is
    invalidated so that late completions can be recognized and discarded.
    """

    id: str
    name: str
    source: Union[LocalSource, RemoteSource] = pydantic.Field(discriminator="kind")
    registered_at: datetime.datetime
    registered_by: Optional[str] = None
    selected: bool = False
    visible: bool = False
    raw_series: Optional[Tuple[Sample, ...]] = None
    processed_series: Optional[Tuple[ClassifiedSample, ...]] = None
    display_mode: DisplayMode = DisplayMode.raw
    generation: int = 0

    def summary(self) -> "FileSummary":
        """Returns the listing view of this entry."""
        return FileSummary(
            id=self.id,
            name=self.name,
            registered_at=self.registered_at,
            registered_by=self.registered_by,
            selected=self.selected,
            visible=self.visible,
            has_raw=self.raw_series is not None,
            has_processed=bool(self.processed_series),
        )


class FileSummary(BaseModel):
    """A read-only row of the file listing."""

    model_config = pydantic.ConfigDict(frozen=True)

    id: str
    name: str
    registered_at: datetime.datetime
    registered_by: Optional[str] = None
    selected: bool
    visible: bool
    has_raw: bool
    has_processed: bool


@dataclass(frozen=True)
class ReadModel:
    """What the renderer receives for the active file.

    Attributes:
        file_id: Identifier of the active file.
        name: Display name of the active file.
        mode: The display mode the series corresponds to.
        display_series: The raw samples, or the classified samples when mode is
            classified.
        preview: The first rows of display_series.
        visible: Whether the file's data panel is expanded.
    """

    file_id: str
    name: str
    mode: DisplayMode
    display_series: Tuple[Union[Sample, ClassifiedSample], ...]
    preview: Tuple[Union[Sample, ClassifiedSample], ...]
    visible: bool = False

    def to_frame(self) -> pl.DataFrame:
        """Convert the display series to a polars DataFrame.

        Returns:
            A DataFrame with a 'time' column and one column per axis. In classified
                mode it also carries the 'activity' label and an 'activity_code'
                overlay column, 1 for Walking and 0 otherwise.
        """
        columns = {
            "time": pl.Series(
                "time",
                [sample.timestamp for sample in self.display_series],
                dtype=pl.Datetime("us", "UTC"),
            ),
            "x": pl.Series("x", [s.x for s in self.display_series], dtype=pl.Float64),
            "y": pl.Series("y", [s.y for s in self.display_series], dtype=pl.Float64),
            "z": pl.Series("z", [s.z for s in self.display_series], dtype=pl.Float64),
        }
        if self.mode == DisplayMode.classified:
            activities = [
                sample.activity.value
                for sample in self.display_series
                if isinstance(sample, ClassifiedSample)
            ]
            columns["activity"] = pl.Series("activity", activities, dtype=pl.Utf8)
            columns["activity_code"] = pl.Series(
                "activity_code",
                [int(label == Activity.walking.value) for label in activities],
                dtype=pl.Int8,
            )
        return pl.DataFrame(columns)
