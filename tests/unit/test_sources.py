"""Test the local and remote data sources."""

import asyncio
from typing import Any

import pytest
import pytest_mock

from accelview.core import exceptions, models
from accelview.io import sources


def test_dataset_record_aliases() -> None:
    """Test the dataset API field names and numeric ids are accepted."""
    record = sources.DatasetRecord.model_validate(
        {"datasetId": 12, "fileName": "walk.csv", "uploadedAt": "2024-05-02T10:00:00Z"}
    )

    assert record.id == "12"
    assert record.name == "walk.csv"
    assert record.registered_at is not None


def test_local_upload_and_fetch(example_csv: str) -> None:
    """Test uploads are keyed by name and fetched from memory."""
    source = sources.LocalDataSource()

    async def scenario() -> Any:
        entry = await source.upload("walk.csv", example_csv, registered_by="user-1")
        content = await source.fetch(entry)
        listing = await source.list_files()
        return entry, content, listing

    entry, content, listing = asyncio.run(scenario())

    assert entry.id == entry.name == "walk.csv"
    assert entry.registered_by == "user-1"
    assert content == example_csv
    assert listing == [entry]


def test_local_upload_duplicate(example_csv: str) -> None:
    """Test two uploads with the same name are refused."""
    source = sources.LocalDataSource()

    async def scenario() -> None:
        await source.upload("walk.csv", example_csv)
        await source.upload("walk.csv", example_csv)

    with pytest.raises(exceptions.DuplicateFileError):
        asyncio.run(scenario())


def test_local_delete(example_csv: str) -> None:
    """Test deleted uploads are no longer listed."""
    source = sources.LocalDataSource()

    async def scenario() -> Any:
        await source.upload("walk.csv", example_csv)
        await source.delete("walk.csv")
        return await source.list_files()

    assert asyncio.run(scenario()) == []


def test_remote_list_files(dataset_store: Any) -> None:
    """Test the listing is turned into remote entries."""
    source = sources.RemoteDataSource(dataset_store)

    listing = asyncio.run(source.list_files())

    assert [entry.id for entry in listing] == ["1", "2"]
    assert all(isinstance(entry.source, models.RemoteSource) for entry in listing)


def test_remote_list_files_unreachable(dataset_store: Any) -> None:
    """Test a failing store is reported as a source error."""
    dataset_store.fail_list = True
    source = sources.RemoteDataSource(dataset_store)

    with pytest.raises(exceptions.SourceError, match="server unavailable"):
        asyncio.run(source.list_files())


def test_remote_list_files_malformed(
    dataset_store: Any, mocker: pytest_mock.MockerFixture
) -> None:
    """Test records without a name are reported as a source error."""
    mocker.patch.object(dataset_store, "list", return_value=[{"datasetId": "1"}])
    source = sources.RemoteDataSource(dataset_store)

    with pytest.raises(exceptions.SourceError, match="malformed"):
        asyncio.run(source.list_files())


def test_remote_fetch_failure(dataset_store: Any) -> None:
    """Test a failed download is a structural parse error."""
    source = sources.RemoteDataSource(dataset_store)
    entry = asyncio.run(source.list_files())[0]
    del dataset_store.datasets["1"]

    with pytest.raises(exceptions.ParseError) as exc_info:
        asyncio.run(source.fetch(entry))

    assert exc_info.value.kind == exceptions.ParseErrorKind.structural
    assert "Failed to fetch file data" in str(exc_info.value)


def test_remote_upload(dataset_store: Any, example_csv: str) -> None:
    """Test the store assigns the id of uploaded files."""
    source = sources.RemoteDataSource(dataset_store)

    entry = asyncio.run(source.upload("walk.zip", example_csv))

    assert entry.id == "101"
    assert entry.source == models.RemoteSource(locator="101")


def test_remote_upload_failure(
    dataset_store: Any, mocker: pytest_mock.MockerFixture
) -> None:
    """Test a rejected upload is a registration error."""
    mocker.patch.object(dataset_store, "upload", side_effect=OSError("disk full"))
    source = sources.RemoteDataSource(dataset_store)

    with pytest.raises(exceptions.RegistrationError, match="File upload failed"):
        asyncio.run(source.upload("walk.csv", b""))


def test_remote_delete_failure(dataset_store: Any) -> None:
    """Test deleting an unknown dataset is a source error."""
    source = sources.RemoteDataSource(dataset_store)

    with pytest.raises(exceptions.SourceError, match="Failed to delete file"):
        asyncio.run(source.delete("missing"))
