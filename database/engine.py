import logging

from sqlalchemy import BigInteger, Integer, event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from core.config import settings

logger = logging.getLogger(__name__)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# Surrogate key type: BIGINT on PostgreSQL, INTEGER on SQLite (rowid autoincrement)
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


def build_engine(database_url: str, statement_timeout: float | None = None) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    PostgreSQL (asyncpg) gets a pooled engine with a per-command timeout.
    SQLite (aiosqlite) gets foreign keys switched on; in-memory databases
    share a single connection so every session sees the same data.
    """
    url = make_url(database_url)
    timeout = statement_timeout or settings.database_statement_timeout

    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"connect_args": {"timeout": timeout}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=False, **kwargs)

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_async_engine(
        url,
        echo=False,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,
        connect_args={"command_timeout": timeout},
    )


db_engine = build_engine(settings.database_url)

# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)


# Function to initialize the database (create tables)
async def init_db(engine: AsyncEngine = db_engine):
    # Import models so they register on Base.metadata
    import database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()
