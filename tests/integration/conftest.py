"""Integration-test fixtures.

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool (created at import time) stays valid across the
whole session. Requires PostgreSQL with migrations applied
(``alembic upgrade head``); the suite is skipped when the database is down.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.main import app
from src.oc_common.database import engine


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM orders LIMIT 1"))
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"database not available: {exc}")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

