"""Pipeline orchestration: registration, parsing, classification and display."""

import asyncio
import contextlib
import functools
import logging
import pathlib
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

from accelview.core import (
    config,
    exceptions,
    file_registry,
    models,
    session,
    view_state,
)
from accelview.io import sources
from accelview.io.readers import parser
from accelview.io.writers import writers
from accelview.processing import classifiers

logger = config.get_logger()


@dataclass
class PipelineState:
    """Session wide state of the pipeline.

    Attributes:
        registry: The known files.
        view: Display state of the active file.
        error: Message of the latest failed operation, cleared on success.
        message: Informational message for the user, such as why a toggle had no
            effect.
    """

    registry: file_registry.FileRegistry = field(
        default_factory=file_registry.FileRegistry
    )
    view: view_state.ViewStateController = field(
        default_factory=view_state.ViewStateController
    )
    error: Optional[str] = None
    message: Optional[str] = None


class Orchestrator:
    """Sequences registration, parsing and classification for a session.

    The data source and the classifier are capabilities: the same orchestrator
    serves the local variant (in-memory uploads, threshold labels) and the remote
    variant (dataset store, classification backend).

    At most one parse or classify runs per file. A result that completes after its
    file was deleted is discarded.

    Attributes:
        source: Where file content comes from.
        classifier: How samples are labelled.
        settings: Pipeline settings.
        state: The pipeline state exposed to the renderer.
    """

    def __init__(
        self,
        source: sources.AbstractDataSource,
        classifier: classifiers.AbstractClassifier,
        settings: Optional[config.Settings] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            source: The data source capability.
            classifier: The classification capability.
            settings: Pipeline settings. Defaults are used if None.
        """
        self.source = source
        self.classifier = classifier
        self.settings = settings or config.Settings()
        self.state = PipelineState()
        self._in_flight: Dict[str, object] = {}

    @property
    def registry(self) -> file_registry.FileRegistry:
        """The file registry."""
        return self.state.registry

    @property
    def view(self) -> view_state.ViewStateController:
        """The view-state controller."""
        return self.state.view

    @contextlib.contextmanager
    def _recording_errors(self) -> Iterator[None]:
        try:
            yield
        except exceptions.AccelviewError as e:
            self.state.error = str(e)
            raise

    def _claim(self, file_id: str, operation: str) -> object:
        """Mark an operation as running for a file.

        Raises:
            OperationInFlightError: If an operation is already running for the file.
        """
        self._ensure_idle(file_id, operation)
        token = object()
        self._in_flight[file_id] = token
        return token

    def _ensure_idle(self, file_id: str, operation: str) -> None:
        if file_id in self._in_flight:
            raise exceptions.OperationInFlightError(
                f"Cannot {operation} file {file_id}: another operation is in progress."
            )

    def _release(self, file_id: str, token: object) -> None:
        if self._in_flight.get(file_id) is token:
            del self._in_flight[file_id]

    def _is_current(self, entry: models.FileEntry, generation: int) -> bool:
        """Whether a result computed for entry may still be applied."""
        return (
            entry.id in self.registry
            and self.registry.get(entry.id) is entry
            and entry.generation == generation
        )

    def list_files(self) -> List[models.FileSummary]:
        """Summaries of the registered files, in registration order."""
        return self.registry.list()

    async def refresh(self) -> List[models.FileSummary]:
        """Synchronize the registry with the listing of the data source.

        Returns:
            The file summaries after synchronization.
        """
        with self._recording_errors():
            listing = await self.source.list_files()
            previously_active = self.registry.active_id
            removed = self.registry.replace(listing)
            for file_id in removed:
                self._in_flight.pop(file_id, None)
            if previously_active in removed:
                self.view.reset()
            self.state.error = None
            return self.registry.list()

    async def upload(
        self,
        name: str,
        content: Union[str, bytes],
        session_context: Optional[session.SessionContext] = None,
    ) -> str:
        """Register new content with the data source and the registry.

        Args:
            name: The file name. Its extension must be accepted by the variant.
            content: The raw file content.
            session_context: The signed-in user, recorded for attribution.

        Returns:
            The id of the registered file.

        Raises:
            InvalidFileTypeError: If the file extension is not supported.
            DuplicateFileError: If a local file with the same name exists.
        """
        with self._recording_errors():
            suffix = pathlib.PurePath(name).suffix.lower()
            allowed = self.settings.allowed_extensions
            if suffix not in allowed:
                raise exceptions.InvalidFileTypeError(
                    f"Invalid file format: '{name}'. "
                    f"Please upload one of: {', '.join(allowed)}."
                )
            if self.source.kind == "local" and name in self.registry:
                raise exceptions.DuplicateFileError(
                    f"A file named '{name}' is already registered."
                )

            registered_by = session_context.user_id if session_context else None
            entry = await self.source.upload(name, content, registered_by=registered_by)
            file_id = self.registry.register(entry)
            self.state.error = None
            logger.info("File %s uploaded successfully.", name)
            return file_id

    async def activate(self, file_id: str) -> Optional[models.ReadModel]:
        """Make a file the active one, parsing it if it has no raw series yet.

        If parsing fails, the previously active file is restored, or nothing is
        selected if there was none.

        Args:
            file_id: The file to activate.

        Returns:
            The read model of the file, or None if the file was deleted or another
            file was activated before parsing completed.

        Raises:
            OperationInFlightError: If a parse or classify is running for the file.
            ParseError: If the file content cannot be parsed.
        """
        with self._recording_errors():
            entry = self.registry.get(file_id)
            self._ensure_idle(file_id, "activate")
            previously_active = self.registry.active_id
            self.registry.activate(file_id)
            self.view.begin_loading(entry)

            if entry.raw_series is None:
                generation = entry.generation
                token = self._claim(file_id, "parse")
                try:
                    content = await self.source.fetch(entry)
                    result = await parser.parse_async(
                        content, chunk_size=self.settings.chunk_size
                    )
                except Exception as e:
                    if not self._is_current(entry, generation):
                        logger.debug("Discarding parse failure of deleted %s.", file_id)
                        return None
                    if self.registry.active_id == file_id:
                        self._revert_activation(file_id, previously_active)
                    if isinstance(e, exceptions.AccelviewError):
                        raise
                    raise exceptions.ParseError(
                        exceptions.ParseErrorKind.structural,
                        f"Error parsing file: {e}",
                    ) from e
                finally:
                    self._release(file_id, token)

                if not self._is_current(entry, generation):
                    logger.debug("Discarding parse result of deleted %s.", file_id)
                    return None
                entry.raw_series = result.samples
                entry.processed_series = None
                entry.display_mode = models.DisplayMode.raw
                self.state.message = (
                    f"{result.skipped_rows} invalid rows skipped."
                    if result.skipped_rows
                    else None
                )

            if self.registry.active_id != file_id:
                logger.debug("File %s parsed but no longer active.", file_id)
                return None
            self.view.raw_ready(entry)
            self.state.error = None
            return self.read_model()

    def _revert_activation(
        self, file_id: str, previously_active: Optional[str]
    ) -> None:
        self.registry.release(file_id)
        if (
            previously_active is None
            or previously_active == file_id
            or previously_active not in self.registry
        ):
            self.view.reset()
            return
        previous = self.registry.activate(previously_active)
        if previous.raw_series is None:
            self.view.begin_loading(previous)
        else:
            self.view.raw_ready(previous)

    async def classify(self, model_id: Optional[str]) -> Optional[models.ReadModel]:
        """Classify the active file and switch to the classified display.

        Args:
            model_id: The model to classify with.

        Returns:
            The read model of the file, or None if the file was deleted or is no
            longer active when classification completes.

        Raises:
            ClassificationError: If no file is active, no or an unknown model is
                given, the file has no raw series, or the classifier fails.
            OperationInFlightError: If a parse or classify is running for the file.
        """
        with self._recording_errors():
            entry = self.registry.active
            if entry is None:
                raise exceptions.ClassificationError(
                    exceptions.ClassificationErrorKind.no_active_file,
                    "Please select a file and machine learning model.",
                )
            if not model_id:
                raise exceptions.ClassificationError(
                    exceptions.ClassificationErrorKind.no_model,
                    "Please select a machine learning model.",
                )
            if model_id not in self.settings.models:
                raise exceptions.ClassificationError(
                    exceptions.ClassificationErrorKind.unknown_model,
                    f"Unknown model '{model_id}'. "
                    f"Choose one of: {', '.join(self.settings.models)}.",
                )
            self._ensure_idle(entry.id, "classify")
            if not entry.raw_series:
                raise exceptions.ClassificationError(
                    exceptions.ClassificationErrorKind.empty_series,
                    f"File {entry.id} has no data to classify.",
                )

            generation = entry.generation
            raw_series = entry.raw_series
            token = self._claim(entry.id, "classify")
            self.view.begin_classifying()
            try:
                processed = await self.classifier.classify(
                    model_id, entry.id, raw_series
                )
            except Exception as e:
                if not self._is_current(entry, generation):
                    logger.debug("Discarding classification failure of %s.", entry.id)
                    return None
                if self.registry.active_id == entry.id:
                    self.view.classification_failed()
                if isinstance(e, exceptions.AccelviewError):
                    raise
                raise exceptions.ClassificationError(
                    exceptions.ClassificationErrorKind.backend_failure,
                    f"Failed to process data: {e}",
                ) from e
            finally:
                self._release(entry.id, token)

            if not self._is_current(entry, generation):
                logger.debug("Discarding classification result of %s.", entry.id)
                return None
            entry.processed_series = tuple(processed)
            self.state.error = None
            if self.registry.active_id != entry.id:
                entry.display_mode = models.DisplayMode.classified
                return None
            self.view.classified_ready(entry)
            logger.info("Classified %s with model %s.", entry.id, model_id)
            return self.read_model()

    def toggle_view(self) -> Optional[models.ReadModel]:
        """Flip the active file between its raw and classified display.

        When there is no classified series, nothing changes and the reason is left
        in state.message.
        """
        entry = self.registry.active
        if entry is None:
            self.state.message = "No file selected."
            return None
        self.state.message = self.view.toggle_view(entry)
        return self.read_model()

    async def delete(self, file_id: str) -> None:
        """Delete a file from the data source and the registry.

        Any parse or classify still running for the file is invalidated.

        Raises:
            UnknownFileError: If the file is not registered.
            SourceError: If the data source fails to delete the file.
        """
        with self._recording_errors():
            self.registry.get(file_id)
            await self.source.delete(file_id)
            if file_id not in self.registry:
                return
            was_active = self.registry.delete(file_id)
            self._in_flight.pop(file_id, None)
            if was_active:
                self.view.reset()
            self.state.error = None
            logger.info("File %s deleted successfully.", file_id)

    def set_visible(self, file_id: str, visible: bool) -> None:
        """Expand or collapse a file's data panel."""
        with self._recording_errors():
            self.registry.set_visible(file_id, visible)

    def toggle_visible(self, file_id: str) -> bool:
        """Flip a file's data panel and return whether it is now expanded."""
        with self._recording_errors():
            return self.registry.toggle_visible(file_id)

    def read_model(self) -> Optional[models.ReadModel]:
        """The series the renderer should display for the active file.

        Returns:
            None if no file is active or the active file has not been parsed.
        """
        entry = self.registry.active
        if entry is None or entry.raw_series is None:
            return None

        series: tuple
        if self.view.mode == models.DisplayMode.classified and entry.processed_series:
            series = entry.processed_series
            mode = models.DisplayMode.classified
        else:
            series = entry.raw_series
            mode = models.DisplayMode.raw
        return models.ReadModel(
            file_id=entry.id,
            name=entry.name,
            mode=mode,
            display_series=series,
            preview=series[: self.settings.preview_rows],
            visible=entry.visible,
        )


def build_orchestrator(
    settings: Optional[config.Settings] = None,
    store: Optional[sources.DatasetStore] = None,
    backend: Optional[classifiers.ClassificationBackend] = None,
) -> Orchestrator:
    """Build an orchestrator with the capabilities selected by the settings.

    Args:
        settings: Pipeline settings. The variant decides which capabilities are used.
        store: The dataset store client, required by the remote variant.
        backend: The classification backend, required by the remote variant.

    Returns:
        A ready to use orchestrator.

    Raises:
        ValueError: If the remote variant is requested without a store or backend.
    """
    settings = settings or config.Settings()
    if settings.variant == "remote":
        if store is None or backend is None:
            raise ValueError(
                "The remote variant requires a dataset store and a classification "
                "backend."
            )
        return Orchestrator(
            sources.RemoteDataSource(store),
            classifiers.RemoteClassifier(backend),
            settings,
        )

    label_function = functools.partial(
        classifiers.threshold_labels, threshold=settings.walking_threshold
    )
    return Orchestrator(
        sources.LocalDataSource(),
        classifiers.ThresholdClassifier(label_function),
        settings,
    )


def run(
    input: Union[pathlib.Path, str],
    output: Optional[Union[pathlib.Path, str]] = None,
    model_id: Optional[str] = None,
    settings: Optional[config.Settings] = None,
    verbosity: int = logging.WARNING,
) -> models.ReadModel:
    """Parse, and optionally classify, a single local file.

    Args:
        input: Path to the input file.
        output: Path to save the displayed series to, as .csv or .parquet.
        model_id: The model to classify with. The raw series is returned if None.
        settings: Pipeline settings. Must use the local variant.
        verbosity: The logging level for the logger.

    Returns:
        The read model of the processed file.
    """
    logger.setLevel(verbosity)
    input = pathlib.Path(input)
    output = pathlib.Path(output) if output is not None else None
    if output is not None:
        writers.validate_output(output=output)

    read_model = asyncio.run(
        _run_file(input=input, model_id=model_id, settings=settings)
    )
    if output is not None:
        writers.save_read_model(
            read_model,
            output,
            processing_params={"input_file": str(input), "model": model_id},
        )
    logger.info("Processing for %s completed successfully.", input.stem)
    return read_model


async def _run_file(
    input: pathlib.Path,
    model_id: Optional[str],
    settings: Optional[config.Settings],
) -> models.ReadModel:
    orchestrator = build_orchestrator(settings)
    file_id = await orchestrator.upload(input.name, input.read_bytes())
    read_model = await orchestrator.activate(file_id)
    if model_id is not None:
        read_model = await orchestrator.classify(model_id)
    if read_model is None:
        raise exceptions.AccelviewError(f"No data could be displayed for {input}.")
    return read_model
