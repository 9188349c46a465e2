"""Async engine, session factory and unit-of-work helpers."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from academy.config import settings
from academy.core.database.base import Base
from academy.core.errors import LocalStoreError


logger = structlog.get_logger()


def create_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create the async engine for the local store."""
    return create_async_engine(
        url or settings.database_url,
        echo=settings.database_echo if echo is None else echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    # Register every model on Base.metadata
    import academy.modules.accounts.models  # noqa: F401
    import academy.modules.records.models  # noqa: F401
    import academy.core.session.models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        raise LocalStoreError("Could not initialize the local store") from e
    logger.info("local_store_initialized", url=engine.url.render_as_string())


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional scope around a series of operations.

    Commits on success and rolls back on any exception. Store failures
    surface as LocalStoreError.
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise LocalStoreError("Local store transaction failed") from e
        except BaseException:
            await session.rollback()
            raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session bound to the app runtime."""
    async with session_scope(request.app.state.runtime.session_factory) as session:
        yield session
