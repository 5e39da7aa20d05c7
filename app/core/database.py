"""
Database engines and session factories

The sync engine backs table creation and admin scripts; report reads and
ingestion upserts go through the async engine.
"""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import settings


def _connect_args(url: str) -> Dict[str, Any]:
    # SQLite connections are used from the scheduler thread as well as the app
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Sync engine (table creation, scripts)
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    connect_args=_connect_args(settings.database_url),
)

# Async engine; NullPool because scheduler jobs run on their own event loop
# and a pooled connection is bound to the loop that opened it
async_engine = create_async_engine(
    settings.async_database_url,
    poolclass=NullPool,
    echo=settings.DEBUG,
    connect_args=_connect_args(settings.async_database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


def create_tables() -> None:
    """Create all tables registered on Base (idempotent)"""
    import app.models  # noqa: F401  registers models on Base.metadata

    Base.metadata.create_all(bind=engine)


async def dispose_engines() -> None:
    """Close pooled connections of both engines (app shutdown)"""
    await async_engine.dispose()
    engine.dispose()
