"""Data source capabilities for the local and remote variants."""

import abc
import datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

import pydantic

from accelview.core import config, exceptions, models
from accelview.io.readers import parser

logger = config.get_logger()


class DatasetStore(Protocol):
    """Client of the remote dataset store. Transport is up to the implementation."""

    async def list(self) -> Sequence[Mapping[str, Any]]:
        """Return one record per stored dataset."""
        ...

    async def fetch(self, file_id: str) -> parser.TabularSource:
        """Return the content of a stored dataset."""
        ...

    async def upload(self, name: str, content: Union[str, bytes]) -> str:
        """Store a dataset and return the identifier assigned to it."""
        ...

    async def delete(self, file_id: str) -> None:
        """Remove a stored dataset."""
        ...


class DatasetRecord(pydantic.BaseModel):
    """A listing record of the remote store.

    Accepts both the snake case field names and the camel case names used by the
    dataset API.
    """

    id: str = pydantic.Field(validation_alias=pydantic.AliasChoices("id", "datasetId"))
    name: str = pydantic.Field(
        validation_alias=pydantic.AliasChoices("name", "fileName")
    )
    registered_at: Optional[datetime.datetime] = pydantic.Field(
        default=None,
        validation_alias=pydantic.AliasChoices("registered_at", "uploadedAt"),
    )

    @pydantic.field_validator("id", mode="before")
    def coerce_id(cls, v: Any) -> Any:
        """Accept numeric identifiers."""
        return str(v) if isinstance(v, int) else v


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class AbstractDataSource(abc.ABC):
    """Interface the orchestrator uses to obtain file content."""

    kind: str

    @abc.abstractmethod
    async def list_files(self) -> List[models.FileEntry]:
        """Return the entries currently held by the source."""
        pass

    @abc.abstractmethod
    async def fetch(self, entry: models.FileEntry) -> parser.TabularSource:
        """Return the raw content of an entry, ready to be parsed."""
        pass

    @abc.abstractmethod
    async def upload(
        self,
        name: str,
        content: Union[str, bytes],
        registered_by: Optional[str] = None,
    ) -> models.FileEntry:
        """Accept new content and return the entry describing it."""
        pass

    @abc.abstractmethod
    async def delete(self, file_id: str) -> None:
        """Remove a file from the source."""
        pass


class LocalDataSource(AbstractDataSource):
    """Uploads held in memory for the lifetime of the session.

    Files are identified by their name, which must therefore be unique.
    """

    kind = "local"

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._entries: Dict[str, models.FileEntry] = {}

    async def list_files(self) -> List[models.FileEntry]:
        """Return the uploads held in memory, in upload order."""
        return list(self._entries.values())

    async def fetch(self, entry: models.FileEntry) -> parser.TabularSource:
        """Return the content carried by the entry itself."""
        if not isinstance(entry.source, models.LocalSource):
            raise exceptions.ParseError(
                exceptions.ParseErrorKind.structural,
                f"File {entry.id} has no local content.",
            )
        return entry.source.content

    async def upload(
        self,
        name: str,
        content: Union[str, bytes],
        registered_by: Optional[str] = None,
    ) -> models.FileEntry:
        """Wrap the content in an entry keyed by the file name.

        Raises:
            DuplicateFileError: If a file with the same name was already uploaded.
        """
        if name in self._entries:
            raise exceptions.DuplicateFileError(
                f"A file named '{name}' is already registered."
            )
        entry = models.FileEntry(
            id=name,
            name=name,
            source=models.LocalSource(content=content),
            registered_at=_now(),
            registered_by=registered_by,
        )
        self._entries[name] = entry
        return entry

    async def delete(self, file_id: str) -> None:
        """Drop the upload from memory."""
        self._entries.pop(file_id, None)
        logger.debug("Dropped local file %s.", file_id)


class RemoteDataSource(AbstractDataSource):
    """Datasets held by a remote store.

    Attributes:
        store: The dataset store client.
    """

    kind = "remote"

    def __init__(self, store: DatasetStore) -> None:
        """Initialize the source.

        Args:
            store: The dataset store client.
        """
        self.store = store

    async def list_files(self) -> List[models.FileEntry]:
        """Fetch the listing of the store.

        Raises:
            SourceError: If the store cannot be reached or returns malformed records.
        """
        try:
            records = [
                DatasetRecord.model_validate(record)
                for record in await self.store.list()
            ]
        except pydantic.ValidationError as e:
            raise exceptions.SourceError(
                f"Server returned a malformed file listing: {e.error_count()} errors."
            ) from e
        except Exception as e:
            raise exceptions.SourceError(
                f"Failed to fetch files from server: {e}"
            ) from e

        return [
            models.FileEntry(
                id=record.id,
                name=record.name,
                source=models.RemoteSource(locator=record.id),
                registered_at=record.registered_at or _now(),
            )
            for record in records
        ]

    async def fetch(self, entry: models.FileEntry) -> parser.TabularSource:
        """Download the content of a dataset.

        Raises:
            ParseError: With kind 'structural' if the download fails.
        """
        locator = (
            entry.source.locator
            if isinstance(entry.source, models.RemoteSource)
            else entry.id
        )
        try:
            return await self.store.fetch(locator)
        except Exception as e:
            raise exceptions.ParseError(
                exceptions.ParseErrorKind.structural,
                f"Failed to fetch file data: {e}",
            ) from e

    async def upload(
        self,
        name: str,
        content: Union[str, bytes],
        registered_by: Optional[str] = None,
    ) -> models.FileEntry:
        """Send content to the store and describe the stored dataset.

        Raises:
            RegistrationError: If the store rejects the upload.
        """
        try:
            file_id = await self.store.upload(name, content)
        except Exception as e:
            raise exceptions.RegistrationError(f"File upload failed: {e}") from e

        return models.FileEntry(
            id=str(file_id),
            name=name,
            source=models.RemoteSource(locator=str(file_id)),
            registered_at=_now(),
            registered_by=registered_by,
        )

    async def delete(self, file_id: str) -> None:
        """Delete a dataset from the store.

        Raises:
            SourceError: If the store fails to delete the dataset.
        """
        try:
            await self.store.delete(file_id)
        except Exception as e:
            raise exceptions.SourceError(f"Failed to delete file: {e}") from e
