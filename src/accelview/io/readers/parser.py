"""Turn tabular sources into ordered sequences of validated samples."""

import asyncio
import csv
import io
import zipfile
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Sequence, Tuple, Union

import polars as pl

from accelview.core import config, exceptions, models
from accelview.io.readers import validator

logger = config.get_logger()

Rows = Sequence[Mapping[str, Any]]
TabularSource = Union[str, bytes, Rows]

_OVERFLOW_COLUMN = "__overflow__"


@dataclass(frozen=True)
class ParseResult:
    """Outcome of a successful parse.

    Attributes:
        samples: The valid samples, in source order.
        total_rows: Number of data rows scanned, excluding the header.
        skipped_rows: Number of rows dropped by validation.
    """

    samples: Tuple[models.Sample, ...]
    total_rows: int
    skipped_rows: int


def parse(source: TabularSource, chunk_size: int = 10_000) -> ParseResult:
    """Parse a tabular source into validated samples.

    Rows that fail validation are dropped. They are only reported in aggregate,
    through the skipped_rows count and a single warning.

    Args:
        source: Delimited text, the raw bytes of a CSV or ZIP upload, or an already
            materialized sequence of rows.
        chunk_size: Number of rows validated at once.

    Returns:
        A ParseResult with the samples in the same order as the source rows.

    Raises:
        ParseError: With kind 'structural' if the source cannot be read, 'schema' if
            a required column is absent, and 'empty_data' if no row survives
            validation.
    """
    total_rows, chunks = _row_chunks(source, chunk_size)
    samples: List[models.Sample] = []
    for chunk in chunks:
        samples.extend(_validate_chunk(chunk))
    return _finalize(samples, total_rows)


async def parse_async(source: TabularSource, chunk_size: int = 10_000) -> ParseResult:
    """Parse a tabular source, yielding to the event loop between chunks.

    The result is delivered all at once, exactly as with parse().

    Args:
        source: See parse().
        chunk_size: Number of rows validated between yields.

    Returns:
        A ParseResult with the samples in the same order as the source rows.
    """
    total_rows, chunks = _row_chunks(source, chunk_size)
    samples: List[models.Sample] = []
    for chunk in chunks:
        samples.extend(_validate_chunk(chunk))
        await asyncio.sleep(0)
    return _finalize(samples, total_rows)


def _validate_chunk(chunk: Rows) -> List[models.Sample]:
    results = (validator.validate_row(row) for row in chunk)
    return [result for result in results if isinstance(result, models.Sample)]


def _finalize(samples: List[models.Sample], total_rows: int) -> ParseResult:
    skipped = total_rows - len(samples)
    if not samples:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.empty_data,
            f"No valid data found: {total_rows} rows scanned, none passed validation.",
        )
    if skipped:
        logger.warning("%s invalid rows skipped.", skipped)
    logger.debug("Parsed %s samples from %s rows.", len(samples), total_rows)
    return ParseResult(
        samples=tuple(samples), total_rows=total_rows, skipped_rows=skipped
    )


def _row_chunks(
    source: TabularSource, chunk_size: int
) -> Tuple[int, Iterator[Rows]]:
    """Check the header of a source and split its rows into chunks.

    Args:
        source: See parse().
        chunk_size: Number of rows per chunk.

    Returns:
        The total number of data rows and an iterator over chunks of rows.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size}")

    if isinstance(source, (str, bytes)):
        frame = _read_delimited(source)
        _check_columns(frame.columns)
        overflowing = frame.get_column(_OVERFLOW_COLUMN).sum()
        if overflowing:
            logger.debug("%s rows have more fields than the header.", overflowing)
        selected = frame.filter(~pl.col(_OVERFLOW_COLUMN)).select(
            list(models.REQUIRED_COLUMNS)
        )
        return frame.height, (
            chunk.to_dicts() for chunk in selected.iter_slices(n_rows=chunk_size)
        )

    rows = list(source)
    if not rows:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.empty_data, "No valid data found: no rows."
        )
    if not isinstance(rows[0], Mapping):
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.structural,
            f"Rows must be mappings of column name to value, got {type(rows[0])}.",
        )
    _check_columns(list(rows[0].keys()))
    return len(rows), (
        rows[start : start + chunk_size] for start in range(0, len(rows), chunk_size)
    )


def _check_columns(columns: Sequence[str]) -> None:
    missing = [column for column in models.REQUIRED_COLUMNS if column not in columns]
    if missing:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.schema,
            "Invalid data structure. Make sure the CSV contains timestamp, x, y, z "
            f"columns. Missing: {', '.join(missing)}.",
        )


def _read_delimited(content: Union[str, bytes]) -> pl.DataFrame:
    """Read CSV text, or a ZIP archive holding a CSV, with every column as text.

    Rows with more fields than the header are kept and flagged in the
    overflow column so they can be dropped and counted like any other malformed
    row. Short rows are padded with nulls.

    Args:
        content: Text, or raw bytes of a CSV file or ZIP archive.

    Returns:
        A DataFrame with one string column per header field and a boolean
        overflow column.

    Raises:
        ParseError: If the content is empty of text or cannot be read.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    if zipfile.is_zipfile(io.BytesIO(data)):
        data = _extract_csv_member(data)

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc_info:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.structural, f"Error parsing file: {exc_info}"
        ) from exc_info
    if not text.strip():
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.empty_data, "No valid data found: empty file."
        )

    try:
        records = [record for record in csv.reader(io.StringIO(text)) if record]
    except csv.Error as exc_info:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.structural, f"Error parsing file: {exc_info}"
        ) from exc_info

    header, body = records[0], records[1:]
    width = len(header)
    try:
        frame = pl.DataFrame(
            [record[:width] + [None] * (width - len(record)) for record in body],
            schema=[(name, pl.Utf8) for name in header],
            orient="row",
        )
    except pl.exceptions.PolarsError as exc_info:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.structural, f"Error parsing file: {exc_info}"
        ) from exc_info
    return frame.with_columns(
        pl.Series(
            _OVERFLOW_COLUMN,
            [len(record) > width for record in body],
            dtype=pl.Boolean,
        )
    )


def _extract_csv_member(data: bytes) -> bytes:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            members = [
                name for name in archive.namelist() if name.lower().endswith(".csv")
            ]
            if not members:
                raise exceptions.ParseError(
                    exceptions.ParseErrorKind.structural,
                    "Archive does not contain a .csv file.",
                )
            logger.debug("Reading archive member: %s", members[0])
            return archive.read(members[0])
    except zipfile.BadZipFile as exc_info:
        raise exceptions.ParseError(
            exceptions.ParseErrorKind.structural, f"Corrupt archive: {exc_info}"
        ) from exc_info
