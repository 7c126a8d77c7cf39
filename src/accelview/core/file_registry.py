"""The set of files known to a session."""

from typing import Dict, Iterable, List, Optional

from accelview.core import config, exceptions, models

logger = config.get_logger()


class FileRegistry:
    """Registry of file entries keyed by identifier.

    Listing preserves insertion order. At most one entry is active at a time; the
    active entry is the only one with its selected flag set.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._entries: Dict[str, models.FileEntry] = {}
        self._active_id: Optional[str] = None

    @property
    def active_id(self) -> Optional[str]:
        """Identifier of the active file, if any."""
        return self._active_id

    @property
    def active(self) -> Optional[models.FileEntry]:
        """The active file entry, if any."""
        if self._active_id is None:
            return None
        return self._entries[self._active_id]

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, entry: models.FileEntry) -> str:
        """Add an entry to the registry.

        Args:
            entry: The entry to add. Its id must not already be registered.

        Returns:
            The id of the registered entry.

        Raises:
            DuplicateFileError: If an entry with the same id exists.
        """
        if entry.id in self._entries:
            raise exceptions.DuplicateFileError(
                f"A file named '{entry.id}' is already registered."
            )
        self._entries[entry.id] = entry
        logger.debug("Registered file %s (%s).", entry.id, entry.name)
        return entry.id

    def list(self) -> List[models.FileSummary]:
        """Summaries of all entries, in registration order."""
        return [entry.summary() for entry in self._entries.values()]

    def get(self, file_id: str) -> models.FileEntry:
        """Look up an entry.

        Raises:
            UnknownFileError: If no entry has this id.
        """
        try:
            return self._entries[file_id]
        except KeyError:
            raise exceptions.UnknownFileError(f"No file with id '{file_id}'.") from None

    def delete(self, file_id: str) -> bool:
        """Remove an entry and drop its cached series.

        The entry's generation is bumped so that operations still in flight for it
        can recognize their result as stale.

        Args:
            file_id: The entry to remove.

        Returns:
            True if the removed entry was the active file.
        """
        entry = self.get(file_id)
        entry.raw_series = None
        entry.processed_series = None
        entry.selected = False
        entry.visible = False
        entry.generation += 1
        del self._entries[file_id]

        was_active = self._active_id == file_id
        if was_active:
            self._active_id = None
        logger.debug("Deleted file %s. Was active: %s", file_id, was_active)
        return was_active

    def set_visible(self, file_id: str, visible: bool) -> None:
        """Expand or collapse the data panel of a file."""
        self.get(file_id).visible = visible

    def toggle_visible(self, file_id: str) -> bool:
        """Flip the visibility of a file and return the new value."""
        entry = self.get(file_id)
        entry.visible = not entry.visible
        return entry.visible

    def activate(self, file_id: str) -> models.FileEntry:
        """Make a file the active one, without changing its visibility.

        Args:
            file_id: The entry to activate.

        Returns:
            The newly active entry.
        """
        entry = self.get(file_id)
        if self._active_id is not None and self._active_id != file_id:
            self._entries[self._active_id].selected = False
        entry.selected = True
        self._active_id = file_id
        return entry

    def release(self, file_id: str) -> None:
        """Undo the activation of a file that could not be loaded.

        Args:
            file_id: The entry to release. Nothing happens if it is not active.
        """
        if self._active_id != file_id:
            return
        if file_id in self._entries:
            self._entries[file_id].selected = False
        self._active_id = None

    def replace(self, listing: Iterable[models.FileEntry]) -> List[str]:
        """Synchronize the registry with a listing from the data source.

        Entries whose id is still listed keep their cached series and UI flags.
        Entries no longer listed are deleted.

        Args:
            listing: The entries reported by the data source, in listing order.

        Returns:
            The ids of entries that were removed.
        """
        incoming = {entry.id: entry for entry in listing}
        removed = [file_id for file_id in self._entries if file_id not in incoming]
        for file_id in removed:
            self.delete(file_id)

        merged: Dict[str, models.FileEntry] = {}
        for file_id, entry in incoming.items():
            merged[file_id] = self._entries.get(file_id, entry)
        self._entries = merged
        logger.debug(
            "Registry synchronized: %s entries, %s removed.", len(merged), len(removed)
        )
        return removed
