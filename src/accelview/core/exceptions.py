"""Custom exceptions for accelview."""

from enum import Enum

from accelview.core import config

logger = config.get_logger()


class LoggedException(Exception):
    """Base class that automatically logs messages."""

    def __init__(self, message: str) -> None:
        """Initialize a new instance of the LoggedException class.

        Args:
            message: The message to display.
        """
        logger.error(message)
        super().__init__(message)


class AccelviewError(LoggedException):
    """Base class for all failures surfaced by the pipeline."""

    pass


class RegistrationError(AccelviewError):
    """A file could not be added to the registry."""

    pass


class DuplicateFileError(RegistrationError):
    """A file with the same identity is already registered."""

    pass


class InvalidFileTypeError(RegistrationError):
    """Accelview did not expect this file extension."""

    pass


class UnknownFileError(RegistrationError):
    """No file with the given identifier is registered."""

    pass


class SourceError(AccelviewError):
    """The data source failed to list or delete files."""

    pass


class ParseErrorKind(str, Enum):
    """Categories of file-level parse failures."""

    structural = "structural"
    schema = "schema"
    empty_data = "empty_data"


class ParseError(AccelviewError):
    """A source could not be turned into a sequence of samples."""

    def __init__(self, kind: ParseErrorKind, message: str) -> None:
        """Initialize a new instance of the ParseError class.

        Args:
            kind: The category of the failure.
            message: The message to display.
        """
        self.kind = kind
        super().__init__(message)


class ClassificationErrorKind(str, Enum):
    """Categories of classification failures."""

    no_model = "no_model"
    unknown_model = "unknown_model"
    no_active_file = "no_active_file"
    empty_series = "empty_series"
    backend_failure = "backend_failure"


class ClassificationError(AccelviewError):
    """Classification could not be run or did not produce a valid result."""

    def __init__(self, kind: ClassificationErrorKind, message: str) -> None:
        """Initialize a new instance of the ClassificationError class.

        Args:
            kind: The category of the failure.
            message: The message to display.
        """
        self.kind = kind
        super().__init__(message)


class OperationInFlightError(AccelviewError):
    """A parse or classify request is already running for this file."""

    pass
