import os
import tempfile

# must run before eshop is imported, settings are read at import time
_db_dir = tempfile.mkdtemp(prefix="eshop-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'eshop_test.db')}"
os.environ.setdefault("ENV", "dev")

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from eshop.db.connection import async_engine, async_session
from eshop.db.schema import create_db_and_tables, drop_db_and_tables
from eshop.main import app


@pytest.fixture
async def db():
    await drop_db_and_tables()
    await create_db_and_tables()
    yield
    await async_engine.dispose()


@pytest.fixture
async def db_session(db):
    async with async_session() as session:
        yield session


@pytest.fixture
async def ac_client(db):
    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
