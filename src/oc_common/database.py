"""Async engine, session factory and transaction helper.

Sessions are request-scoped (``get_db_session``). Repositories never commit;
application services wrap each mutation in ``transaction(db)`` so that the
row lock taken by ``SELECT ... FOR UPDATE`` is held until the single commit.
"""
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the ORM mirrors (users, orders, order_items)."""


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit when the block finishes, roll back on any exception and re-raise."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
