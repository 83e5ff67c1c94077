"""
Read-only database access for report generation.

The registrations table belongs to the registration service; this project
only streams rows out of it. The engine is created on first use so that
importing the models never opens a connection.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import Optional

from app.core.config import settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """DATABASE_URL with a plain postgresql:// scheme switched to the asyncpg driver"""
    url = settings.DATABASE_URL
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def get_engine() -> AsyncEngine:
    """
    Engine for the configured database, created once per process.

    NullPool: a report run opens one session and the command exits, so
    there is nothing to gain from keeping connections around.
    """
    global _engine
    if _engine is None:
        url = get_database_url()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_async_engine(
            url,
            echo=settings.DB_ECHO,
            connect_args=connect_args,
            poolclass=NullPool,
        )
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to get_engine()"""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def close_db() -> None:
    """Dispose of the engine; the next get_session_local() starts fresh"""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
