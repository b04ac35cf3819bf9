import os

# config fails fast without a database URL; each test builds its own below
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./bookings-test.db")

import pytest
from fastapi.testclient import TestClient

from database import open_store
from main import create_app
from scheduler import BookingScheduler


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}"


@pytest.fixture
async def store(database_url):
    store = open_store(database_url)
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def scheduler(store):
    return BookingScheduler(store)


@pytest.fixture
def client(database_url):
    with TestClient(create_app(database_url)) as client:
        yield client
