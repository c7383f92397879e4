"""
Database configuration and session management

This module provides the async SQLAlchemy setup used as the document store.
NO models are defined here - this is just infrastructure.
"""

import os
import logging
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)

# Get database URL from environment variable
DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+asyncpg://blog_user:changeme@db:5432/blog_db")

# Base class for ORM models
Base = declarative_base()


class DocumentStore:
    """
    Owns the engine and session factory for one database URL.

    Created disconnected; connect() opens the engine and creates tables,
    disconnect() releases it. Safe to disconnect more than once.
    """

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def connected(self) -> bool:
        return self.engine is not None

    async def connect(self) -> None:
        if self.engine is not None:
            return

        # Using NullPool for better compatibility with containerized environments
        engine = create_async_engine(self.url, poolclass=NullPool, echo=False)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except BaseException:
            await engine.dispose()
            raise

        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(f"Connected to document store ({engine.url.render_as_string(hide_password=True)})")

    async def disconnect(self) -> None:
        if self.engine is None:
            return
        engine, self.engine, self.session_factory = self.engine, None, None
        await engine.dispose()
        logger.info("Disconnected from document store")

    def session(self) -> AsyncSession:
        if self.session_factory is None:
            raise RuntimeError("Document store is not connected")
        return self.session_factory()

    async def check_connection(self) -> bool:
        """
        Test database connectivity
        Returns True if connection successful, False otherwise
        """
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for database sessions
    Usage in FastAPI endpoints:

    @router.get("/endpoint")
    async def endpoint(session: AsyncSession = Depends(get_session)):
        # use session here
        pass
    """
    store: DocumentStore = request.app.state.store
    async with store.session() as session:
        yield session
