import contextlib
from collections.abc import Callable

import pytest
from httpx import ASGITransport, AsyncClient

from campus_events.config.database import engine
from campus_events.main import app
from campus_events.models import BaseModel


@pytest.fixture(autouse=True)
async def test_db():
    """Create a fresh schema for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)
        await conn.run_sync(BaseModel.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)


@pytest.fixture
async def client():
    """Create a test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def client_factory():
    """Test client with dependency overrides applied for the duration of the block."""

    @contextlib.asynccontextmanager
    async def factory(overrides: dict[Callable, Callable] | None = None):
        app.dependency_overrides.update(overrides or {})
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                yield ac
        finally:
            app.dependency_overrides.clear()

    return factory
