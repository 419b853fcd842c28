# smart75/conftest.py
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from smart75.api.deps import get_today  # noqa: E402
from smart75.features.challenge.service import ChallengeService  # noqa: E402
from smart75.features.storage.local import InMemoryStorage  # noqa: E402
from smart75.features.storage.remote import SqlRemoteStore  # noqa: E402
from smart75.features.storage.repository import ChallengeRepository  # noqa: E402
from smart75.main import create_app  # noqa: E402

FIXED_TODAY = "2024-03-10"


@pytest.fixture
def sqlite_engine():
    """
    In-memory SQLite engine shared across connections.

    Stands in for PostgreSQL in remote-store tests.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def remote_store(sqlite_engine):
    return SqlRemoteStore(sqlite_engine)


@pytest.fixture
def local_storage():
    return InMemoryStorage(key="test-profile")


@pytest.fixture
def repository(local_storage):
    return ChallengeRepository(local_storage)


@pytest.fixture
def service(repository):
    return ChallengeService(repository)


@pytest.fixture
def today():
    return FIXED_TODAY


@pytest.fixture
def client(service, today):
    """TestClient over an in-memory repository with a pinned calendar date."""
    app = create_app(service)
    app.dependency_overrides[get_today] = lambda: today
    with TestClient(app) as test_client:
        yield test_client
