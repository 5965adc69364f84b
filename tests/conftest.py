import os
import tempfile
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlmodel import Session


TEST_DB = Path(tempfile.gettempdir()) / "clubhouse_test_app.sqlite3"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"

from clubhouse import app  # noqa: E402
from clubhouse.database import DataClient, engine, init_db  # noqa: E402


@pytest.fixture
def database():
    if TEST_DB.exists():
        TEST_DB.unlink()
    init_db()
    yield
    engine.dispose()
    if TEST_DB.exists():
        TEST_DB.unlink()


@pytest.fixture
def store(database):
    """Run one DataClient call in its own session so reads never see stale rows."""

    def call(method: str, *args, **kwargs):
        with Session(engine) as session:
            return getattr(DataClient(session), method)(*args, **kwargs)

    return call


@pytest_asyncio.fixture
async def async_client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
