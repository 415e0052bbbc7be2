"""Database connection and session management.

Transaction Guarantees:
- Each request gets its own session
- All operations within a request are atomic
- On any exception, the entire transaction is rolled back
- Sessions are properly closed after each request
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.database_echo)

    return create_async_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,  # Check connection health before use
        pool_recycle=300,
        pool_timeout=30,
    )


engine = build_engine(settings.database_url_async)

# Session factory - creates new sessions for each request
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Don't expire objects after commit
    autoflush=False,         # Manual flush for better control
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a transactional database session.

    Transaction Behavior:
    - Session starts in a transaction automatically
    - On successful completion: COMMIT
    - On any exception: ROLLBACK
    - Session is always closed properly
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
            logger.debug("Transaction committed successfully")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database error, transaction rolled back: {e}")
            raise
        except Exception as e:
            await session.rollback()
            logger.debug(f"Request failed, transaction rolled back: {e}")
            raise
        finally:
            await session.close()


async def init_db(
    db_engine: AsyncEngine | None = None,
    retries: int | None = None,
    delay_seconds: float | None = None,
) -> None:
    """Connect to the database and create tables if needed.

    The connection is retried a fixed number of times with a fixed delay.
    When every attempt fails the process exits with status 1.
    """
    from ..models import Base

    db_engine = db_engine or engine
    retries = settings.db_connect_retries if retries is None else retries
    delay_seconds = (
        settings.db_connect_retry_delay_seconds if delay_seconds is None else delay_seconds
    )

    attempts_left = retries
    while True:
        try:
            async with db_engine.begin() as conn:
                # Migrations are out of scope; create_all is idempotent
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Connected to database")
            return
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database connection error: {e}")
            if attempts_left <= 0:
                logger.critical("Could not connect to the database. Exiting.")
                raise SystemExit(1)
            logger.warning(
                f"Retrying connection in {delay_seconds:g} seconds... "
                f"({attempts_left} retries left)"
            )
            attempts_left -= 1
            await asyncio.sleep(delay_seconds)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
