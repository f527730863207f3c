"""
Heimursaga – Async SQLAlchemy engine, session, and declarative base.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from heimursaga.config import settings

# ── Engine ──
def engine_options(url: str) -> dict:
    """Driver options for ``url``."""
    options = {
        "echo": settings.DEBUG,
        "future": True,
    }
    if url.startswith("sqlite"):
        # Concurrent toggles wait on SQLite's single writer lock instead of failing fast
        options["connect_args"] = {"timeout": settings.DATABASE_LOCK_TIMEOUT}
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_options(settings.DATABASE_URL)
)

# ── Session factory ──
async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async database session, auto-closed on exit."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives a request (view tracking, event handlers)."""
    return async_session
