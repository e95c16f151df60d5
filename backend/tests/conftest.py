"""Test fixtures for the settlement backend."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from app.core.config import get_settings
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import dispose_engine, get_sessionmaker
from app.main import app
from app.models import Customer, Tenant


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def tenant_context(
    reset_database: None, db_url: str
) -> dict[str, object]:
    """Seed a tenant with one customer and return their identifiers."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        tenant = Tenant(name="Glow Studio", slug=f"glow-{uuid.uuid4().hex[:8]}")
        session.add(tenant)
        await session.flush()

        customer = Customer(
            tenant_id=tenant.id,
            name="Dewi Lestari",
            email="dewi@example.com",
            phone="+62811000111",
        )
        session.add(customer)
        await session.commit()

        return {
            "tenant_id": tenant.id,
            "tenant_slug": tenant.slug,
            "customer_id": customer.id,
        }


@pytest_asyncio.fixture()
async def app_context(
    tenant_context: dict[str, object],
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client plus bearer headers for the seeded tenant."""
    token = create_access_token(
        "staff@example.com", tenant_id=str(tenant_context["tenant_id"])
    )
    context = dict(tenant_context)
    context["headers"] = {"Authorization": f"Bearer {token}"}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
