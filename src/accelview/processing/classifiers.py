"""Label accelerometer samples with an activity."""

import abc
from typing import Any, Callable, List, Mapping, Protocol, Sequence

import numpy as np
import pydantic

from accelview.core import config, exceptions, models

logger = config.get_logger()

LabelFunction = Callable[[Sequence[models.Sample]], Sequence[models.Activity]]


class ClassificationBackend(Protocol):
    """Server side model runner used by the remote variant."""

    async def classify(
        self, model_id: str, file_id: str
    ) -> Sequence[Mapping[str, Any]]:
        """Return one labelled row per sample of the referenced file."""
        ...


def threshold_labels(
    samples: Sequence[models.Sample], threshold: float = 0.5
) -> List[models.Activity]:
    """Label each sample by comparing its x-axis value against a threshold.

    This is a placeholder rule, not a trained model.

    Args:
        samples: The samples to label.
        threshold: Samples with x strictly greater than this are Walking.

    Returns:
        One label per sample, in input order.
    """
    x_values = np.fromiter((sample.x for sample in samples), dtype=float)
    return [
        models.Activity.walking if is_walking else models.Activity.stationary
        for is_walking in x_values > threshold
    ]


def classify(
    raw_series: Sequence[models.Sample],
    label_function: LabelFunction = threshold_labels,
) -> List[models.ClassifiedSample]:
    """Pair every sample with the label assigned to it.

    Args:
        raw_series: The samples to classify.
        label_function: Maps the samples to a parallel sequence of labels.

    Returns:
        New classified samples, same length and order as raw_series.

    Raises:
        ClassificationError: If the label function does not return exactly one label
            per sample.
    """
    labels = label_function(raw_series)
    if len(labels) != len(raw_series):
        raise exceptions.ClassificationError(
            exceptions.ClassificationErrorKind.backend_failure,
            f"Label function returned {len(labels)} labels for "
            f"{len(raw_series)} samples.",
        )
    return [
        models.ClassifiedSample.from_sample(sample, activity)
        for sample, activity in zip(raw_series, labels)
    ]


class AbstractClassifier(abc.ABC):
    """Interface shared by local and remote classification capabilities."""

    @abc.abstractmethod
    async def classify(
        self,
        model_id: str,
        file_id: str,
        raw_series: Sequence[models.Sample],
    ) -> List[models.ClassifiedSample]:
        """Produce one classified sample per raw sample.

        The output must have the same length and order as raw_series. The raw
        samples are never modified.
        """
        pass


class ThresholdClassifier(AbstractClassifier):
    """Local, synchronous classification with a substitutable labelling function.

    Attributes:
        label_function: Maps a sequence of samples to a parallel sequence of labels.
    """

    def __init__(self, label_function: LabelFunction = threshold_labels) -> None:
        """Initialize the classifier.

        Args:
            label_function: The labelling function. Defaults to the threshold rule.
        """
        self.label_function = label_function

    async def classify(
        self,
        model_id: str,
        file_id: str,
        raw_series: Sequence[models.Sample],
    ) -> List[models.ClassifiedSample]:
        """Label the raw series in process.

        The model identifier is accepted for interface parity. Every model maps to
        the same labelling function.
        """
        logger.debug("Classifying %s locally with model %s.", file_id, model_id)
        return classify(raw_series, self.label_function)


class RemoteClassifier(AbstractClassifier):
    """Classification delegated to a server round trip.

    Attributes:
        backend: The classification backend.
    """

    def __init__(self, backend: ClassificationBackend) -> None:
        """Initialize the classifier.

        Args:
            backend: The backend that runs the model.
        """
        self.backend = backend

    async def classify(
        self,
        model_id: str,
        file_id: str,
        raw_series: Sequence[models.Sample],
    ) -> List[models.ClassifiedSample]:
        """Request labels from the backend and validate what it returns.

        Raises:
            ClassificationError: If the backend fails, returns malformed rows, or
                returns a different number of rows than raw_series.
        """
        logger.debug("Requesting classification of %s with %s.", file_id, model_id)
        try:
            rows = await self.backend.classify(model_id, file_id)
        except Exception as e:
            raise exceptions.ClassificationError(
                exceptions.ClassificationErrorKind.backend_failure,
                f"Failed to process data: {e}",
            ) from e

        try:
            processed = [models.ClassifiedSample.model_validate(row) for row in rows]
        except pydantic.ValidationError as e:
            raise exceptions.ClassificationError(
                exceptions.ClassificationErrorKind.backend_failure,
                f"Backend returned malformed rows: {e.error_count()} errors.",
            ) from e

        if len(processed) != len(raw_series):
            raise exceptions.ClassificationError(
                exceptions.ClassificationErrorKind.backend_failure,
                f"Backend returned {len(processed)} rows for "
                f"{len(raw_series)} samples.",
            )
        return processed
