"""Display state of the active file."""

from typing import Optional

from accelview.core import config, models

logger = config.get_logger()

NO_CLASSIFIED_DATA_MESSAGE = (
    "No classified data to show. Select a model and process the file first."
)
BUSY_MESSAGE = "The file is still being processed. Try again when it is ready."


class ViewStateController:
    """State machine for the active file.

    NO_SELECTION -> RAW_LOADING -> RAW_READY -> CLASSIFYING -> CLASSIFIED_READY.
    A failed classification returns to the status held before it started. The
    display mode can only be classified while the active file has a processed
    series. The last mode shown is remembered on each file entry.

    Attributes:
        status: Current lifecycle status.
        mode: Current display mode.
    """

    def __init__(self) -> None:
        """Initialize with nothing selected."""
        self.status = models.ViewStatus.no_selection
        self.mode = models.DisplayMode.raw
        self._status_before_classifying: Optional[models.ViewStatus] = None

    def reset(self) -> None:
        """Return to NO_SELECTION with the raw display mode."""
        self.status = models.ViewStatus.no_selection
        self.mode = models.DisplayMode.raw
        self._status_before_classifying = None

    def begin_loading(self, entry: models.FileEntry) -> None:
        """Enter RAW_LOADING for a newly activated file."""
        logger.debug("Loading file %s.", entry.id)
        self.status = models.ViewStatus.raw_loading
        self.mode = models.DisplayMode.raw
        self._status_before_classifying = None

    def raw_ready(self, entry: models.FileEntry) -> None:
        """Show a file whose raw series is available.

        A file with a non-empty processed series resumes the display mode that was
        last set for it.
        """
        if entry.processed_series:
            self.status = models.ViewStatus.classified_ready
            self.mode = entry.display_mode
        else:
            self.status = models.ViewStatus.raw_ready
            self.mode = models.DisplayMode.raw
        logger.debug("File %s ready. Status: %s", entry.id, self.status.value)

    def begin_classifying(self) -> None:
        """Enter CLASSIFYING, remembering the status to revert to."""
        self._status_before_classifying = self.status
        self.status = models.ViewStatus.classifying

    def classified_ready(self, entry: models.FileEntry) -> None:
        """Show the processed series of the active file."""
        entry.display_mode = models.DisplayMode.classified
        self.status = models.ViewStatus.classified_ready
        self.mode = models.DisplayMode.classified
        self._status_before_classifying = None

    def classification_failed(self) -> None:
        """Revert to the status held before classification started."""
        self.status = self._status_before_classifying or models.ViewStatus.raw_ready
        self._status_before_classifying = None

    def toggle_view(self, entry: models.FileEntry) -> Optional[str]:
        """Flip between the raw and classified display.

        Only RAW_READY and CLASSIFIED_READY can be toggled.

        Args:
            entry: The active file.

        Returns:
            None if the mode was flipped, otherwise a message explaining why the
            toggle had no effect.
        """
        if self.status in (
            models.ViewStatus.raw_loading,
            models.ViewStatus.classifying,
        ):
            return BUSY_MESSAGE
        if not entry.processed_series:
            return NO_CLASSIFIED_DATA_MESSAGE
        if self.mode == models.DisplayMode.raw:
            self.mode = models.DisplayMode.classified
        else:
            self.mode = models.DisplayMode.raw
        entry.display_mode = self.mode
        return None
