"""
Pytest configuration and fixtures.

The app runs against a throwaway SQLite file so route tests exercise the
real engine, sessions and models.
"""
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="auction-admin-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["AUTH_ENABLED"] = "true"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from auction_admin.auth import create_token  # noqa: E402
from auction_admin.db.database import Base, async_session, engine, init_db  # noqa: E402
from auction_admin.main import app  # noqa: E402


@pytest_asyncio.fixture
async def db_session():
    await init_db()
    async with async_session() as session:
        yield session
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_token('admin')}"}


@pytest_asyncio.fixture
async def client(db_session, auth_headers):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", headers=auth_headers) as c:
        yield c


@pytest_asyncio.fixture
async def anon_client(db_session):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
