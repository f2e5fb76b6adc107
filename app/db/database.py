"""
Database configuration with async support
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings

# Configure logging based on environment
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def _engine_options(url: str, pool_size: int, max_overflow: int) -> dict:
    if url.startswith("sqlite"):
        # aiosqlite: a connection may only be used from the loop that opened it
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": pool_size,  # Number of connections to maintain
        "max_overflow": max_overflow,  # Additional connections that can be created
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "connect_args": {
            "server_settings": {
                "application_name": "class_social_api",
            }
        },
    }


class Database:
    """
    Explicitly constructed store handle: owns the engine and the session factory.

    Created at application startup, handed to the services that need it and
    disposed at shutdown.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 30,
    ):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            future=True,
            **_engine_options(url, pool_size, max_overflow),
        )
        self.session_factory = sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, app_settings=settings) -> "Database":
        logger.info(f"Environment: {app_settings.ENVIRONMENT}")
        logger.info(f"Database URL configured: {bool(app_settings.DATABASE_URL)}")
        return cls(
            app_settings.DATABASE_URL,
            echo=app_settings.DATABASE_ECHO,
            pool_size=app_settings.DB_POOL_SIZE,
            max_overflow=app_settings.DB_MAX_OVERFLOW,
        )

    async def init_db(self) -> None:
        """Initialize database tables"""
        import app.models  # noqa: F401  registers every table on SQLModel.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Async database session dependency
    Usage:
    async def some_endpoint(db: AsyncSession = Depends(get_db)):
        ...
    """
    database = get_database(request)
    async with database.session() as session:
        yield session
