from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from ..settings import settings

_is_sqlite = settings.async_database_url.startswith("sqlite")

# sqlite connections are opened per session so they never outlive the event loop
# that created them (tests drive the service through repeated asyncio.run calls)
engine = create_async_engine(
    settings.async_database_url,
    future=True,
    echo=False,
    **({"poolclass": NullPool} if _is_sqlite else {"pool_pre_ping": True}),
)

SessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)

Base = declarative_base()

_schema_ready = False


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    await ensure_schema()
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    from . import models  # noqa: F401 - ensure models registered

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_schema() -> None:
    """Create tables on first use; later calls return immediately."""
    global _schema_ready
    if _schema_ready:
        return
    await init_db()
    _schema_ready = True


async def ping() -> bool:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True
