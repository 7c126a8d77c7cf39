"""Fixtures used by pytest."""

import asyncio
import pathlib
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pytest

from accelview.core import config, orchestrator

EXAMPLE_CSV = (
    "timestamp,x,y,z\n"
    "2024-01-01T00:00:00Z,0.9,0.1,0.0\n"
    "bad,1,1,1\n"
    "2024-01-01T00:00:01Z,0.2,0.2,0.2\n"
)

HEADER_ONLY_CSV = "timestamp,x,y,z\n"


class FakeDatasetStore:
    """In-memory dataset store with optional gates to hold fetches open."""

    def __init__(self, datasets: Optional[Dict[str, Tuple[str, Any]]] = None) -> None:
        """Initialize with datasets keyed by id, each a (name, content) pair."""
        self.datasets: Dict[str, Tuple[str, Any]] = dict(datasets or {})
        self.gates: Dict[str, asyncio.Event] = {}
        self.fail_list = False
        self.fetch_calls: List[str] = []
        self._next_id = 100

    async def list(self) -> Sequence[Mapping[str, Any]]:
        """Return listing records with the dataset API field names."""
        if self.fail_list:
            raise ConnectionError("server unavailable")
        return [
            {
                "datasetId": file_id,
                "fileName": name,
                "uploadedAt": "2024-05-02T10:00:00Z",
            }
            for file_id, (name, _) in self.datasets.items()
        ]

    async def fetch(self, file_id: str) -> Any:
        """Return the stored content, waiting on the gate if one is set."""
        self.fetch_calls.append(file_id)
        _, content = self.datasets[file_id]
        if file_id in self.gates:
            await self.gates[file_id].wait()
        return content

    async def upload(self, name: str, content: Union[str, bytes]) -> str:
        """Store content under a new id."""
        self._next_id += 1
        file_id = str(self._next_id)
        self.datasets[file_id] = (name, content)
        return file_id

    async def delete(self, file_id: str) -> None:
        """Remove a dataset, failing for unknown ids."""
        del self.datasets[file_id]


class FakeClassificationBackend:
    """Backend that labels the stored rows with a fixed activity."""

    def __init__(self, rows_by_file: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        """Initialize with the rows returned for each file id."""
        self.rows_by_file = dict(rows_by_file or {})
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None
        self.calls: List[Tuple[str, str]] = []

    async def classify(self, model_id: str, file_id: str) -> List[Dict[str, Any]]:
        """Return the configured rows, or raise the configured error."""
        self.calls.append((model_id, file_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.rows_by_file[file_id]


@pytest.fixture
def example_csv() -> str:
    """CSV text with two valid rows and one row with a bad timestamp."""
    return EXAMPLE_CSV


@pytest.fixture
def header_only_csv() -> str:
    """CSV text with a header and no data rows."""
    return HEADER_ONLY_CSV


@pytest.fixture
def example_csv_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """The example CSV written to disk."""
    path = tmp_path / "walk.csv"
    path.write_text(EXAMPLE_CSV)
    return path


@pytest.fixture
def classified_rows() -> List[Dict[str, Any]]:
    """Rows a classification backend returns for the example CSV."""
    return [
        {
            "timestamp": "2024-01-01T00:00:00Z",
            "x": 0.9,
            "y": 0.1,
            "z": 0.0,
            "activity": "Walking",
        },
        {
            "timestamp": "2024-01-01T00:00:01Z",
            "x": 0.2,
            "y": 0.2,
            "z": 0.2,
            "activity": "Stationary",
        },
    ]


@pytest.fixture
def local_orchestrator() -> orchestrator.Orchestrator:
    """An orchestrator with the local capabilities."""
    return orchestrator.build_orchestrator(config.Settings())


@pytest.fixture
def dataset_store() -> FakeDatasetStore:
    """A store holding the example file and a header-only file."""
    return FakeDatasetStore(
        {"1": ("walk.csv", EXAMPLE_CSV), "2": ("empty.csv", HEADER_ONLY_CSV)}
    )


@pytest.fixture
def classification_backend(
    classified_rows: List[Dict[str, Any]],
) -> FakeClassificationBackend:
    """A backend that knows the example file."""
    return FakeClassificationBackend({"1": classified_rows})


@pytest.fixture
def remote_orchestrator(
    dataset_store: FakeDatasetStore,
    classification_backend: FakeClassificationBackend,
) -> orchestrator.Orchestrator:
    """An orchestrator with the remote capabilities."""
    return orchestrator.build_orchestrator(
        config.Settings(variant="remote"),
        store=dataset_store,
        backend=classification_backend,
    )
