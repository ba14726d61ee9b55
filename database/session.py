"""
Database session management for the Room Visualizer.

Provides async database session handling with connection pooling,
health checks, and proper error handling.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, database_url: str, echo: bool = False):
        """
        Initialize database manager.

        Args:
            database_url: SQLAlchemy async connection URL
            echo: Whether to echo SQL statements (for debugging)
        """
        self.database_url = database_url
        self.echo = echo
        self._engine = None
        self._session_factory = None
        self._initialized = False

    @property
    def safe_url(self) -> str:
        """Connection URL with the password masked, for logs."""
        return make_url(self.database_url).render_as_string(hide_password=True)

    async def initialize(self) -> None:
        """Initialize database engine and session factory."""
        if self._initialized:
            return

        logger.info("Initializing database connection", url=self.safe_url)

        engine_kwargs = {"echo": self.echo, "pool_pre_ping": True}
        # SQLite uses a pool without size settings
        if make_url(self.database_url).get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=10,
                max_overflow=20,
                pool_recycle=3600,  # Recycle connections after 1 hour
            )

        self._engine = create_async_engine(self.database_url, **engine_kwargs)

        # Create session factory
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        self._initialized = True
        logger.info("Database connection initialized successfully")

    async def create_tables(self) -> None:
        """Create all database tables."""
        if not self._initialized:
            await self.initialize()

        logger.info("Creating database tables")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session.

        Yields:
            AsyncSession: Database session with automatic cleanup
        """
        if not self._initialized:
            await self.initialize()

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """
        Perform database health check.

        Returns:
            True if database is healthy, False otherwise
        """
        try:
            async with self.get_session() as session:
                # Simple query to check connectivity
                result = await session.execute(text("SELECT 1"))
                result.scalar()
                return True

        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close database connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._initialized = False
            logger.info("Database connections closed")
