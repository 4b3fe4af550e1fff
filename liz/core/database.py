"""Async engine, session factory and session helpers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import settings

# backend name -> async driver the engine must use
ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "mysql": "mysql+asyncmy",
    "sqlite": "sqlite+aiosqlite",
}


def resolve_async_database_url(raw_url: str) -> str:
    """Rewrite DATABASE_URL so it names an async driver.

    Hosting providers hand out ``postgres://`` and ``postgresql://`` URLs, and
    local setups often use plain ``sqlite://``. Any sync driver of a known
    backend is swapped for its async counterpart; a URL that already names
    that driver comes back unchanged.
    """
    url = make_url(raw_url)
    backend = url.drivername.lower().split("+", 1)[0]
    target = ASYNC_DRIVERS.get(backend)
    if target is None:
        raise ValueError(
            f"Unsupported database dialect '{url.drivername}'. "
            "Use PostgreSQL (asyncpg), MySQL (asyncmy) or SQLite (aiosqlite)."
        )
    if url.drivername.lower() == target:
        return raw_url
    return url.set(drivername=target).render_as_string(hide_password=False)


def build_engine(database_url: str) -> AsyncEngine:
    options: dict[str, object] = {"echo": settings.debug}
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
    return create_async_engine(database_url, **options)


class Base(DeclarativeBase):
    """Declarative base for every Liz table."""


DATABASE_URL = resolve_async_database_url(settings.database_url)

engine = build_engine(DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; services commit explicitly."""
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for scripts: commit when the block succeeds, roll back otherwise."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
