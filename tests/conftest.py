import pytest
from fastapi.testclient import TestClient

from audit_api.config import Settings
from audit_api.main import create_app
from audit_api.repositories import AuditRepository, ReportRepository, UserRepository
from audit_api.store import FlatFileStore


class FakeClock:
    """Deterministic millisecond clock. Each call advances by `step`."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def store(tmp_path) -> FlatFileStore:
    return FlatFileStore(tmp_path / "data")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def users(store, clock) -> UserRepository:
    return UserRepository(store, clock=clock)


@pytest.fixture
def audits(store, clock) -> AuditRepository:
    return AuditRepository(store, clock=clock)


@pytest.fixture
def reports(store, clock) -> ReportRepository:
    return ReportRepository(store, clock=clock)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(backend="local", data_dir=tmp_path / "api-data")


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
