"""
Database engine construction, per-request sessions, and the ORM base class.

SQLAlchemy 2.0 with async support. There is no module-level engine: the
application lifespan builds one with ``create_session_factory()`` and stores
the session factory on ``app.state``. Each request then receives its own
session through ``get_db()``, and that session is the storage handle handed
to every mapper the request constructs.

Session lifecycle:
  The session commits when the request completes and rolls back on any
  exception, so a denied or failed request leaves no partial writes.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def create_session_factory(
    database_url: str, echo: bool = False
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Build an async engine and its session factory.

    expire_on_commit=False keeps attributes loaded after commit; without it,
    reading a committed object would trigger a lazy load, which fails in an
    async context.
    """
    engine = create_async_engine(database_url, echo=echo)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory


async def get_db(request: Request):
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
