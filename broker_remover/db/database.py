"""Database configuration and session management."""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine for ``database_url``."""
    if database_url.startswith("sqlite"):
        # sqlite needs the parent directory of the db file to exist
        from pathlib import Path
        from sqlalchemy.engine import make_url

        path = make_url(database_url).database
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

    return create_async_engine(database_url, echo=echo, future=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession], seed: bool = True):
    """Create tables and seed the broker catalog."""
    # Import all models to register them with Base.metadata
    from broker_remover.models import broker, request  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if seed:
        await seed_brokers(session_factory)


async def seed_brokers(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Seed the known data brokers if the catalog is empty.

    Returns the number of brokers inserted.
    """
    from broker_remover.brokers.catalog import SEED_BROKERS
    from broker_remover.models.broker import DataBroker

    async with session_factory() as session:
        result = await session.execute(select(func.count(DataBroker.id)))
        count = result.scalar()

        if count > 0:
            return 0

        for entry in SEED_BROKERS:
            session.add(DataBroker(**entry))

        await session.commit()

    logger.info("Populated data broker catalog with %d brokers", len(SEED_BROKERS))
    return len(SEED_BROKERS)
