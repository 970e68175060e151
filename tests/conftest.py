import os
import random
from datetime import datetime, timedelta

import pytest

# Keep the test run away from real storage and remote services
os.environ["GARDEN_STORE"] = "memory"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["ATTESTATION_MODE"] = "off"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import create_token
from database import get_db, init_db
from dependencies import GardenRegistry
from main import create_app
from schemas import Identity
from services.garden_service import GardenEngine
from services.storage_service import MemoryStore
from services.timer_service import ManualTicker


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 12, 0).astimezone())


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def engine(store, clock):
    garden = GardenEngine("user-1", store, clock=clock, rng=random.Random(42),
                          identity=Identity(user_id="user-1", display_name="Ada"),
                          seed_sample_data=False)
    garden.load()
    return garden


@pytest.fixture
def db_session_factory():
    db_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=db_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def registry(store, clock):
    return GardenRegistry(store, ticker_factory=ManualTicker, clock=clock, seed_sample_data=False)


@pytest.fixture
def client(registry, db_session_factory):
    app = create_app(registry=registry, init_database=False)

    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(user_id: str = "user-1", display_name: str = "Ada") -> dict:
    token = create_token({"user_id": user_id, "username": user_id, "display_name": display_name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers()
