# src/metricboard/db/session.py

"""Database engine and session management.

Settings come from the environment:

- ``DATABASE_URL``: async SQLAlchemy URL, a local SQLite file by default
- ``DB_ECHO``: log every statement when true
- ``DB_POOL_SIZE`` / ``DB_MAX_OVERFLOW`` / ``DB_POOL_RECYCLE``: pool tuning,
  ignored for SQLite
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./metricboard.db"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_recycle: int = 3600

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        return cls(
            url=os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL,
            echo=os.getenv("DB_ECHO", "").strip().lower() in _TRUE_VALUES,
            pool_size=_env_int("DB_POOL_SIZE", cls.pool_size),
            max_overflow=_env_int("DB_MAX_OVERFLOW", cls.max_overflow),
            pool_recycle=_env_int("DB_POOL_RECYCLE", cls.pool_recycle),
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for create_async_engine.

        SQLite gets no pool settings; its driver does not pool connections.
        """
        if self.is_sqlite:
            return {"echo": self.echo}
        return {
            "echo": self.echo,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": self.pool_recycle,
        }


def create_engine_from_settings(settings: DatabaseSettings) -> AsyncEngine:
    return create_async_engine(settings.url, **settings.engine_options())


settings = DatabaseSettings.from_env()
engine = create_engine_from_settings(settings)

# expire_on_commit=False keeps ORM objects readable after a service commits,
# so routers can serialize what the service returned.
AsyncSessionLocal = async_sessionmaker(
    bind=engine, autoflush=False, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides an async database session.

    Rolls back on any exception raised while the request is being handled
    and always closes the session.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(
                "Database session error, rolling back",
                extra={"error": str(e)},
            )
            await session.rollback()
            raise
