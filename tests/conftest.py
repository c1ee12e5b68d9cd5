import pytest

from pattern_analytics.clinical_data_reader import InMemoryClinicalDataReader
from pattern_analytics.main import app
from tests.fixtures import SnapshotFactory, frozen_clock


@pytest.fixture(scope="session")
def anyio_backend():
    """Restrict anyio tests to the asyncio backend."""

    yield "asyncio"


@pytest.fixture
def dependency_overrides_guard():
    """Save and restore FastAPI dependency overrides for each test."""

    original_overrides = dict(app.dependency_overrides)

    try:
        yield app.dependency_overrides
    finally:
        app.dependency_overrides = original_overrides


@pytest.fixture
def clock():
    """Frozen clock shared by every service under test."""

    return frozen_clock


@pytest.fixture
def factory():
    SnapshotFactory.reset()
    return SnapshotFactory


@pytest.fixture
def make_reader():
    def _make(patients):
        return InMemoryClinicalDataReader(patients)

    return _make
