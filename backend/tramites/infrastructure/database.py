"""Database Session Manager — async engine and sessions behind the sql storage backend.

Invariants:
    - A session that raises is rolled back before the error leaves session()
    - SQLAlchemy errors surface as DatabaseError (core/errors.py), never raw
    - Only built when settings.storage_backend == "sql"; SqlRepository is its only caller

Design Decisions:
    - Pool sizing applies to server databases only; SQLite URLs keep the dialect default pool
    - expire_on_commit=False: rows stay readable after commit for mapping to entities
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from tramites.core.errors import DatabaseError
from tramites.db.base import Base

logger = logging.getLogger(__name__)


# Most specific first: IntegrityError and OperationalError are DBAPIError subclasses.
_ERROR_KINDS: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
)


def _describe(error: SQLAlchemyError) -> tuple[str, str]:
    for kind, message, operation in _ERROR_KINDS:
        if isinstance(error, kind):
            return message, operation
    return "Database operation failed", "unknown"


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that rolls back and raises DatabaseError on any SQLAlchemy failure."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            message, operation = _describe(e)
            logger.error(f"{message}: {e}", extra={"operation": operation})
            raise DatabaseError(message, operation) from e
        finally:
            await session.close()

    async def create_schema(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        import tramites.models  # noqa: F401  -- populate Base.metadata
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Set by init_db() from the FastAPI lifespan; read by the readiness probe
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager
